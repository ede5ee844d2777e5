"""Rich terminal display for island-upgrades."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

_STATUS_STYLES: dict[str, tuple[str, str]] = {
    "upgraded": ("green", "Upgrade applied"),
    "maxed": ("gold1", "Fully upgraded"),
    "disabled": ("grey50", "Upgrades are disabled in this game mode"),
    "island_level_too_low": ("red1", "Island level too low"),
    "no_permission": ("red1", "Missing permission for this tier"),
    "payment_failed": ("red1", "Payment failed"),
}


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n < 0:
        return "-" + format_number(-n)
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        value = n / 1_000
        if value >= 1000:
            return f"{value:.0f}K"
        return f"{value:.1f}K"
    return f"{n:,}"


def _level_bar(current: int, total: int, width: int = 20) -> str:
    """Render a level progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "█" * width + "]"
    ratio = max(0.0, min(current / total, 1.0))
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_quote(data: dict) -> None:
    """Print the next upgrade for a dimension, or that it is fully upgraded.

    data has: dimension, optional name, namespace, level, and either quote (dict) or None.
    """
    dimension = data.get("name") or data.get("dimension", "")
    level = data.get("level", 0)
    quote = data.get("quote")

    lines: list[str] = [""]
    if quote is None:
        lines.append(f"  [bold gold1]{dimension}: Fully upgraded[/]")
        lines.append(f"  Current level: {level}")
        border = "gold1"
    else:
        max_level = quote.get("max_level", 0)
        lines.append(f"  [bold]{dimension}[/] - tier [bold]{quote.get('tier_name', '')}[/]")
        lines.append(f"  {_level_bar(level, max_level)} {level}/{max_level}")
        lines.append("")
        lines.append(f"  Effect:            +{format_number(quote.get('effect', 0))}")
        lines.append(f"  Cost:              {format_number(quote.get('cost', 0))}")
        lines.append(f"  Island level req.: {format_number(quote.get('min_secondary_level', 0))}")
        if quote.get("permission_level", 0) > 0:
            lines.append(f"  Permission level:  {quote['permission_level']}")
        for cmd in quote.get("commands", []):
            lines.append(f"  [dim]$ {cmd}[/]")
        border = "deep_sky_blue1"
    lines.append("")

    namespace = data.get("namespace") or "default"
    panel = Panel(
        "\n".join(lines),
        title=f"[bold]UPGRADE QUOTE[/] ({namespace})",
        box=box.ROUNDED,
        border_style=border,
        width=60,
    )
    console.print(panel)


def print_tiers(dimension: str, namespace: str | None, tiers: list[dict]) -> None:
    """Print the merged tier list of a dimension in resolution order.

    Each dict has: id, max_level, permission_level, upgrade, island_min_level, vault_cost.
    """
    table = Table(
        title=f"Tiers for {dimension} ({namespace or 'default'})",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Tier", style="bold")
    table.add_column("Max level", justify="right")
    table.add_column("Perm", justify="right")
    table.add_column("Upgrade")
    table.add_column("Island min level")
    table.add_column("Cost")

    if not tiers:
        console.print(f"[grey50]No tiers configured for {dimension}.[/]")
        return

    for tier in tiers:
        max_level = tier.get("max_level", -1)
        table.add_row(
            tier.get("id", ""),
            "unbounded" if max_level < 0 else str(max_level),
            str(tier.get("permission_level", 0)),
            tier.get("upgrade", ""),
            tier.get("island_min_level", ""),
            tier.get("vault_cost", ""),
        )

    console.print(table)


def print_check_result(result: dict) -> None:
    """Print a summary of a configuration load and its diagnostics."""
    diagnostics = result.get("diagnostics", [])
    lines: list[str] = [""]
    lines.append(f"  Range tiers:        {result.get('range_tiers', 0)}")
    lines.append(f"  Block limits:       {result.get('blocks', 0)}")
    lines.append(f"  Entity limits:      {result.get('entities', 0)}")
    lines.append(f"  Entity group limits:{result.get('groups', 0):>2}")
    lines.append(f"  Command upgrades:   {result.get('commands', 0)}")
    namespaces = result.get("namespaces", [])
    lines.append(f"  Game modes:         {', '.join(namespaces) if namespaces else '-'}")
    disabled = result.get("disabled", [])
    if disabled:
        lines.append(f"  Disabled:           {', '.join(disabled)}")

    if diagnostics:
        lines.append("")
        lines.append(f"  [bold yellow]{len(diagnostics)} entr{'y' if len(diagnostics) == 1 else 'ies'} skipped:[/]")
        for message in diagnostics:
            lines.append(f"  ⚠️  {message}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]Config Check[/]",
        box=box.ROUNDED,
        border_style="yellow" if diagnostics else "green",
        width=70,
    )
    console.print(panel)


def print_upgrade_result(result: dict) -> None:
    """Print the outcome of an upgrade attempt."""
    status = result.get("status", "")
    color, label = _STATUS_STYLES.get(status, ("white", status))
    lines: list[str] = ["", f"  [bold {color}]{label}[/]"]

    if status == "upgraded":
        lines.append(f"  {result.get('dimension', '')} is now level {result.get('new_level', 0)}")
        lines.append(f"  Effect: +{format_number(result.get('effect', 0))}")
        lines.append(f"  Paid:   {format_number(result.get('cost', 0))}")
        for cmd in result.get("commands", []):
            lines.append(f"  [dim]$ {cmd}[/]")
    elif status == "island_level_too_low":
        lines.append(f"  Requires island level {format_number(result.get('min_secondary_level', 0))}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]UPGRADE[/]",
        box=box.ROUNDED,
        border_style=color,
        width=50,
    )
    console.print(panel)


def print_levels(island_id: str, levels: dict[str, int]) -> None:
    """Print every stored upgrade level of an island."""
    if not levels:
        console.print(f"[grey50]No upgrades recorded for island {island_id}.[/]")
        return
    table = Table(
        title=f"Upgrade levels of {island_id}",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Upgrade", style="bold")
    table.add_column("Level", justify="right")
    for name, level in sorted(levels.items()):
        table.add_row(name, str(level))
    console.print(table)


def print_error(message: str) -> None:
    console.print(f"[red]{message}[/]")
