import subprocess
from importlib.metadata import PackageNotFoundError, version


def get_app_version() -> str:
    try:
        return version("avatar-service")
    except PackageNotFoundError:
        pass
    try:
        return subprocess.check_output(
            ["git", "describe", "--tags", "--always"], stderr=subprocess.DEVNULL
        ).strip().decode("utf-8")
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


APP_VERSION = get_app_version()
