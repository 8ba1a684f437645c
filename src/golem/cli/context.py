"""Per-invocation state shared by every golem command."""

from dataclasses import dataclass
from pathlib import Path

from golem.artifacts.paths import get_default_install_root


@dataclass(frozen=True)
class GolemContext:
    """Options set on the root group, passed to commands via ctx.obj.

    Attributes:
        quiet: Suppress informational output (warnings and errors still print)
        home_dir: Home directory substituted for placeholders and hidden in messages
    """

    quiet: bool
    home_dir: Path

    def resolve_install_root(self, install_root: Path | None) -> Path:
        """Use the --root value when given, otherwise the default install root."""
        if install_root is not None:
            return install_root
        return get_default_install_root()


def create_context(*, quiet: bool) -> GolemContext:
    return GolemContext(quiet=quiet, home_dir=Path.home())
