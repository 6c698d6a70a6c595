import logging
from typing import Any, List, Optional

from rich.box import ROUNDED, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from catinfo.domain.interfaces.user_interface import UserInterface
from catinfo.domain.models.breed import Breed, BreedImage
from catinfo.domain.models.common import CacheStats

logger = logging.getLogger(__name__)

def _format_bytes(size: int) -> str:
    """Formats a byte count for humans (e.g. '1.5 MB')."""
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{int(value)} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"

class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console (an explicit one can be passed in, e.g. for recording)."""
        self._console = console or Console()

    @property
    def console(self):
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_breeds(self, breeds: List[Breed], **kwargs: Any) -> None:
        """Renders the breed list as a table.

        Args:
            breeds: Breeds in catalog order.
            **kwargs: Additional arguments including:
                - title: Table title (default: "Cat Breeds")
        """
        if not breeds:
            self.display_info("No breeds available.")
            return

        table = Table(title=kwargs.get("title", "Cat Breeds"), box=ROUNDED, header_style="bold cyan")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("Origin", style="green")
        table.add_column("Life span", justify="right")
        for breed in breeds:
            table.add_row(breed.id, breed.name, breed.origin, f"{breed.life_span} years")
        self._console.print(table)
        logger.debug(f"Displayed {len(breeds)} breeds.")

    def display_breed(self, breed: Breed, image: Optional[Any] = None, **kwargs: Any) -> None:
        """Renders the detail panel of one breed.

        Args:
            breed: The breed to describe.
            image: The decoded reference image, if one could be loaded.
            **kwargs: Additional arguments for formatting.
        """
        body = Text()
        body.append("Origin: ", style="bold")
        body.append(f"{breed.origin}\n")
        body.append("Temperament: ", style="bold")
        body.append(f"{breed.temperament}\n")
        body.append("Weight: ", style="bold")
        body.append(f"{breed.weight.metric} kg\n")
        body.append("Life span: ", style="bold")
        body.append(f"{breed.life_span} years\n")
        if breed.wikipedia_url:
            body.append("Wikipedia: ", style="bold")
            body.append(f"{breed.wikipedia_url}\n", style="underline blue")
        body.append("\n")
        body.append(breed.description)

        if image is not None and hasattr(image, "size"):
            width, height = image.size
            subtitle = f"[dim]reference image {width}x{height}[/dim]"
        elif breed.reference_image_id:
            subtitle = "[dim]reference image unavailable[/dim]"
        else:
            subtitle = None

        self._console.print(
            Panel(body, title=f"[bold cyan]{breed.name}[/bold cyan]", subtitle=subtitle, box=ROUNDED, expand=False)
        )

    def display_images(self, images: List[BreedImage], **kwargs: Any) -> None:
        """Renders a page of image metadata.

        Args:
            images: Image metadata in page order.
            **kwargs: Additional arguments including:
                - title: Table title (default: "Images")
                - caption: Optional caption (e.g. page position)
        """
        if not images:
            self.display_info("No images available for this breed")
            return

        table = Table(title=kwargs.get("title", "Images"), caption=kwargs.get("caption"), box=SIMPLE)
        table.add_column("#", justify="right", style="dim")
        table.add_column("ID", style="bold")
        table.add_column("Size", justify="right")
        table.add_column("URL", overflow="fold")
        for position, image in enumerate(images, start=1):
            size = f"{image.width}x{image.height}" if image.width and image.height else "-"
            table.add_row(str(position), image.id or "-", size, image.url or "-")
        self._console.print(table)

    def display_cache_stats(self, stats: CacheStats, **kwargs: Any) -> None:
        table = Table(title="Image Cache", box=ROUNDED, header_style="bold cyan")
        table.add_column("Tier")
        table.add_column("Entries", justify="right")
        table.add_column("Size", justify="right")
        table.add_row("Memory", str(stats["memory_entries"]), _format_bytes(stats["memory_cost_bytes"]))
        table.add_row("Disk", str(stats["disk_entries"]), _format_bytes(stats["disk_bytes"]))
        self._console.print(table)

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message."""
        self._console.print(f"[bold red]Error:[/bold red] {error_message}")

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message."""
        self._console.print(f"[bold yellow]Warning:[/bold yellow] {warning_message}")

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message."""
        self._console.print(f"[cyan]{info_message}[/cyan]")
