"""Settings for route discovery and static path enumeration.

File stems decide which handler kind a file in a route directory becomes
(``page.py``, ``route.py``, ``layout.py``, ...).  Enumeration settings bound
how many value sources run at once and how long each may take.
"""

from dataclasses import dataclass

from thicket.errors import ConfigurationError
from thicket.routing.route import HandlerKind


@dataclass(frozen=True, slots=True)
class ThicketConfig:
    """Discovery and enumeration settings. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ThicketConfig(enumerate_concurrency=4, load_modules=False)
    """

    # Discovery: file stem -> handler kind (``page.py`` is a page, etc.)
    page_file: str = "page"
    api_file: str = "route"
    layout_file: str = "layout"
    template_file: str = "template"
    error_file: str = "error"
    loading_file: str = "loading"
    not_found_file: str = "not_found"
    suffix: str = ".py"
    ignore_prefixes: tuple[str, ...] = ("_", ".")  # Private folders never become segments
    load_modules: bool = True  # Import handler files; False records file paths only

    # Enumeration
    enumerate_concurrency: int = 8  # Max value-source callbacks in flight
    enumerate_timeout: float | None = 10.0  # Per-callback seconds; None disables

    # CLI
    log_level: str = "warning"

    def __post_init__(self) -> None:
        if self.enumerate_concurrency < 1:
            msg = f"enumerate_concurrency must be >= 1, got {self.enumerate_concurrency}"
            raise ConfigurationError(msg)
        if self.enumerate_timeout is not None and self.enumerate_timeout <= 0:
            msg = f"enumerate_timeout must be positive or None, got {self.enumerate_timeout}"
            raise ConfigurationError(msg)
        stems = [
            self.page_file,
            self.api_file,
            self.layout_file,
            self.template_file,
            self.error_file,
            self.loading_file,
            self.not_found_file,
        ]
        if len(set(stems)) != len(stems):
            msg = "Handler file names must be distinct"
            raise ConfigurationError(msg)

    @property
    def handler_files(self) -> dict[str, HandlerKind]:
        """Map each handler file stem to the kind of record it defines."""
        return {
            self.page_file: HandlerKind.PAGE,
            self.api_file: HandlerKind.API,
            self.layout_file: HandlerKind.LAYOUT,
            self.template_file: HandlerKind.TEMPLATE,
            self.error_file: HandlerKind.ERROR,
            self.loading_file: HandlerKind.LOADING,
            self.not_found_file: HandlerKind.NOT_FOUND,
        }
