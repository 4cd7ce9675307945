"""Output formatting for the Star Destiny CLI.

Provides consistent output formatting for both human-readable and
machine-readable (JSON) output modes.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from star_destiny.catalog import Direction, Mansion, MansionCatalog
from star_destiny.service import Revelation

# Console instances for stdout and stderr
console = Console()
error_console = Console(stderr=True)

GROUP_STYLES = {
    Direction.EAST: "cyan",
    Direction.NORTH: "blue",
    Direction.WEST: "dark_orange",
    Direction.SOUTH: "red",
}


def _range_label(catalog: MansionCatalog, mansion: Mansion) -> str:
    end_month, end_day = catalog.range_end(mansion)
    return f"{mansion.start_month:02d}-{mansion.start_day:02d} .. {end_month:02d}-{end_day:02d}"


def mansion_to_dict(mansion: Mansion) -> dict[str, Any]:
    return {
        "id": mansion.id,
        "short_name": mansion.short_name,
        "full_name": mansion.full_name,
        "group": mansion.group.value,
        "element": mansion.element,
        "animal": mansion.animal,
        "poem": mansion.poem,
        "fortune": mansion.fortune,
        "image_ref": mansion.image_ref,
    }


def output_revelation(
    revelation: Revelation, as_json: bool = False, restored: bool = False
) -> None:
    """Output a resolved mansion card.

    Args:
        revelation: Record and mansion to show.
        as_json: Output as JSON if True.
        restored: The result comes from a previous visit.
    """
    record = revelation.record
    mansion = revelation.mansion

    if as_json:
        console.print_json(
            data={
                "record": record.model_dump(by_alias=True, exclude_none=True),
                "mansion": mansion_to_dict(mansion),
                "restored": restored,
            }
        )
        return

    style = GROUP_STYLES.get(mansion.group, "white")
    body = Text()
    body.append(f"{record.name or '旅人'}\n\n", style="bold")
    body.append(f"{mansion.full_name}\n", style=f"bold {style}")
    body.append(f"{mansion.group.guardian} · {mansion.element} · {mansion.animal}\n\n")
    body.append(f"“{mansion.poem}”\n\n", style="italic")
    body.append(mansion.fortune)

    subtitle = f"生日 {record.birth_date}"
    if restored:
        subtitle += " · 已保存"
    console.print(
        Panel(body, title=mansion.short_name, subtitle=subtitle, border_style=style)
    )


def output_catalog(catalog: MansionCatalog, as_json: bool = False) -> None:
    """Output all mansions with their birth-date ranges."""
    if as_json:
        console.print_json(
            data=[
                {**mansion_to_dict(m), "range": _range_label(catalog, m)}
                for m in catalog
            ]
        )
        return

    table = Table(title="二十八宿")
    table.add_column("ID", justify="right")
    table.add_column("Mansion")
    table.add_column("Group")
    table.add_column("Range")

    for mansion in catalog:
        style = GROUP_STYLES.get(mansion.group, "white")
        table.add_row(
            str(mansion.id),
            f"[{style}]{mansion.full_name}[/{style}]",
            mansion.group.guardian,
            _range_label(catalog, mansion),
        )

    console.print(table)


def output_device(
    device_id: str | None, dedup_key: str, unique_used: bool, as_json: bool = False
) -> None:
    if as_json:
        console.print_json(
            data={
                "device_id": device_id,
                "dedup_key": dedup_key,
                "unique_used": unique_used,
            }
        )
        return
    console.print(f"Device: {device_id or 'not created yet'}")
    console.print(f"Dedup key: {dedup_key}")
    console.print(f"Unique submission: {'used' if unique_used else 'available'}")


def output_error(message: str) -> None:
    error_console.print(f"[red]Error:[/red] {message}")
