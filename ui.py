from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.markup import escape
from datetime import datetime

from utils import format_size

console = Console()


class FluxUI:
    def __init__(self, console=console):
        self.console = console

    def print_log(self, message, level="INFO"):
        """Prints a styled log message."""
        color = "green" if level == "INFO" else "red"
        if level == "WARNING": color = "yellow"

        time_str = f"[{datetime.now().strftime('%H:%M:%S')}]"
        self.console.print(f"{time_str} [bold {color}]{level}[/]: {escape(str(message))}", highlight=False)

    def summary(self, torrent):
        """Key/value grid with the torrent's headline facts."""
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="bold cyan", justify="right")
        grid.add_column()

        grid.add_row("Name", Text(torrent.name))
        grid.add_row("Announce", Text(torrent.announce))
        for url in torrent.trackers:
            if url != torrent.announce:
                grid.add_row("", Text(url, style="dim"))
        grid.add_row("Info Hash", torrent.info_hash.hex())
        grid.add_row("Size", f"{format_size(torrent.total_length)} ({torrent.total_length} bytes)")
        grid.add_row("Pieces", f"{torrent.number_of_pieces} x {format_size(torrent.piece_length)}")
        if not torrent.pieces_consistent:
            grid.add_row("", Text(f"expected {torrent.expected_piece_count} pieces", style="bold yellow"))
        return grid

    def files_table(self, torrent):
        table = Table(box=None)
        table.add_column("#", style="magenta", justify="right")
        table.add_column("Path", style="cyan")
        table.add_column("Length", justify="right", style="green")

        for i, f in enumerate(torrent.files):
            table.add_row(str(i), Text("/".join(f.path)), format_size(f.length))
        return table

    def show_torrent(self, torrent):
        """Renders a loaded torrent as a panel with its file list."""
        title = "Multi-file torrent" if torrent.is_multi_file else "Single-file torrent"
        self.console.print(Panel(self.summary(torrent), title=title, border_style="blue"))
        self.console.print(Panel(self.files_table(torrent), title="Files", border_style="blue"))


ui = FluxUI()
