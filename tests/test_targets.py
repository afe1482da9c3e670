"""Target matrix and artifact naming."""
from betabuild.model import BuildTarget, PlatformConfig
from betabuild.targets import artifact_name, executable_suffix, run_dir_name, targets


class TestMatrix:

    def test_no_duplicate_targets(self):
        matrix = targets()
        assert len(set(matrix)) == len(matrix)

    def test_matrix_is_stable(self):
        assert targets() == targets()
        assert targets()[0] == BuildTarget("darwin", "386")
        assert targets()[-1] == BuildTarget("windows", "amd64")

    def test_matrix_contents(self):
        matrix = set(targets())
        assert len(matrix) == 13
        assert BuildTarget("linux", "arm64") in matrix
        assert BuildTarget("freebsd", "arm") in matrix

    def test_target_value_identity(self):
        assert BuildTarget("linux", "amd64") == BuildTarget("linux", "amd64")
        assert hash(BuildTarget("linux", "amd64")) == hash(BuildTarget("linux", "amd64"))
        assert str(BuildTarget("linux", "amd64")) == "linux/amd64"


class TestNaming:

    def test_windows_gets_exe_suffix(self):
        assert executable_suffix("windows") == ".exe"
        assert executable_suffix("linux") == ""
        assert executable_suffix("darwin") == ""

    def test_artifact_name(self):
        version = "v1.2.3-4-gabcdef-dirty"
        assert artifact_name("restic", version, BuildTarget("linux", "amd64")) == \
            "restic_v1.2.3-4-gabcdef-dirty_linux_amd64"
        assert artifact_name("restic", version, BuildTarget("windows", "amd64")) == \
            "restic_v1.2.3-4-gabcdef-dirty_windows_amd64.exe"

    def test_run_dir_name_is_deterministic(self):
        assert run_dir_name("restic", "v0.7.0") == "restic-v0.7.0"
        assert run_dir_name("restic", "v0.7.0") == run_dir_name("restic", "v0.7.0")

    def test_artifact_names_unique_within_run(self):
        names = [artifact_name("restic", "v1", t) for t in targets()]
        assert len(set(names)) == len(names)


class TestPlatformConfig:

    def test_environment_disables_cgo(self):
        env = PlatformConfig.for_target(BuildTarget("openbsd", "386")).environment()
        assert env == {"CGO_ENABLED": "0", "GOOS": "openbsd", "GOARCH": "386"}
