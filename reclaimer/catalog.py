"""
Static catalog of cleanup actions for hosted Ubuntu runners.

Each action is launched independently. Its steps form a chain: a step only
starts after the previous one succeeded.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from types import MappingProxyType

# See https://github.com/actions/runner-images/issues/2840#issuecomment-2272410832
HOST_PATHS_TO_REMOVE = (
    "/opt/google/chrome",
    "/opt/microsoft/msedge",
    "/opt/microsoft/powershell",
    "/opt/mssql-tools",
    "/opt/hostedtoolcache",
    "/opt/pipx",
    "/usr/lib/mono",
    "/usr/local/julia*",
    "/usr/local/lib/android",
    "/usr/local/lib/node_modules",
    "/usr/local/share/chromium",
    "/usr/local/share/powershell",
    "/usr/share/dotnet",
    "/usr/share/swift",
    "/var/cache/snapd",
    "/var/lib/snapd",
    "/tmp/*",
    "/usr/share/doc",
    "/usr/local/share/boost",
    "/opt/ghc",
    "/usr/share/man",
    "/usr/local/share/man",
    "/usr/local/go",
    "/root/.npm",
    "/home/runner/.npm",
    "/root/.cache/pip",
    "/home/runner/.cache/pip",
    "/root/.cache/go-build",
    "/root/.cache",
    "/home/runner/.cache",
)

PURGE_PACKAGES = (
    "apache2",
    "nginx",
    "ant",
    "ant-optional",
    "azure-cli",
    "7zip",
    "ansible",
    "snapd",
    "php8*",
    "r-base",
    "imagemagick",
    "gfortran",
    "ghc*",
    "google-cloud-cli",
    "google-cloud-cli-anthoscli",
    "google-chrome-stable",
    "firefox",
    "sphinxsearch",
    "mysql-server",
    "mysql-client",
    "postgresql-client-*",
    "swig",
    "temurin-*",
)

JAVA_ALTERNATIVES = (
    "jar", "jarsigner", "java", "javac", "javadoc", "javap", "jcmd",
    "jconsole", "jdb", "jdeprscan", "jdeps", "jfr", "jhsdb", "jimage",
    "jinfo", "jjs", "jlink", "jmap", "jmod", "jnativescan", "jpackage",
    "jps", "jrunscript", "jshell", "jstack", "jstat", "jstatd",
    "jwebserver", "keytool", "pack200", "rmic", "rmid", "rmiregistry",
    "unpack200", "serialver",
)

SWAP_FILES = ("/mnt/swapfile", "/swapfile")

APT_CACHE_PATHS = ("/var/cache/apt/archives/*", "/var/lib/apt/lists/*")

NODOC_CONFIG_PATH = "/etc/dpkg/dpkg.cfg.d/01_nodoc"

NODOC_PATH_EXCLUDES = (
    "/usr/share/doc/*",
    "/usr/share/man/*",
    "/usr/share/info/*",
)

LOG_PREFIX_COLOR_THEME = MappingProxyType({
    "nodoc-dpkg-config": "bright_yellow",
    "docker-system-prune": "cyan",
    "remove-java-alternatives": "bright_magenta",
    "swapoff": "bright_red",
    "rm-swapfile": "green",
    "rm-host-paths": "magenta",
    "apt-purge-packages": "yellow",
    "apt-autoremove-autoclean": "blue",
    "rm-apt-cache": "bright_black",
})


@dataclass(frozen=True)
class Step:
    """
    One link of an action chain.

    Args:
        name (str): Log prefix, unique across the catalog.
        commands (tuple): argv tuples run in order.
        best_effort (bool): Run every command and ignore individual failures.
    """
    name: str
    commands: tuple[tuple[str, ...], ...]
    best_effort: bool = False

    @property
    def color(self) -> str:
        return LOG_PREFIX_COLOR_THEME.get(self.name, "white")


@dataclass(frozen=True)
class CleanupAction:
    """An independently launched unit of cleanup work."""
    name: str
    steps: tuple[Step, ...]


def _shell(script: str) -> tuple[str, ...]:
    return ("sh", "-c", script)


def _nodoc_script() -> str:
    excludes = "\n".join(f"path-exclude {path}" for path in NODOC_PATH_EXCLUDES)
    return f"tee {NODOC_CONFIG_PATH} > /dev/null << 'EOF'\n{excludes}\nEOF"


def build_actions() -> tuple[CleanupAction, ...]:
    """Return the cleanup actions in launch order."""
    # Glob patterns are expanded by the elevated shell, not by Python.
    remove_host_paths = _shell("rm -rf " + " ".join(HOST_PATHS_TO_REMOVE))
    remove_apt_cache = _shell("rm -rf " + " ".join(APT_CACHE_PATHS))

    return (
        CleanupAction(
            name="nodoc-dpkg-config",
            steps=(Step("nodoc-dpkg-config", (_shell(_nodoc_script()),)),),
        ),
        CleanupAction(
            name="docker-system-prune",
            steps=(
                Step(
                    "docker-system-prune",
                    (("docker", "system", "prune", "--all", "--force", "--volumes"),),
                ),
            ),
        ),
        CleanupAction(
            name="swap",
            steps=(
                Step("swapoff", (("swapoff", "-a"),)),
                Step("rm-swapfile", (("rm", "-rf", *SWAP_FILES),)),
            ),
        ),
        CleanupAction(
            name="host-paths",
            steps=(
                Step("rm-host-paths", (remove_host_paths,)),
                Step(
                    "remove-java-alternatives",
                    tuple(("update-alternatives", "--remove-all", alt) for alt in JAVA_ALTERNATIVES),
                    best_effort=True,
                ),
                Step("apt-purge-packages", (("apt-get", "purge", "-y", *PURGE_PACKAGES),)),
                Step(
                    "apt-autoremove-autoclean",
                    (_shell("apt-get autoremove -y && apt-get autoclean -y"),),
                ),
                Step("rm-apt-cache", (remove_apt_cache,)),
            ),
        ),
    )


def iter_steps(actions: Iterable[CleanupAction]) -> Iterator[tuple[CleanupAction, Step]]:
    for action in actions:
        for step in action.steps:
            yield action, step
