import typing as t

import click

from rinth.modmeta import RemoteMod


def format_bytes(size: float):
    for unit in ("B", "KiB", "MiB", "GiB"):
        if abs(size) < 1024 or unit == "GiB":
            break
        size /= 1024
    return f"{size:.1f} {unit}" if unit != "B" else f"{int(size)} B"


def format_columns(data: t.Mapping[str, t.Any], prefix=""):
    if not data:
        return ""
    width = max(len(key) for key in data)
    return "\n".join(f"{prefix}{key.ljust(width)}\t{value}" for key, value in data.items())


def format_mod(mod: RemoteMod):
    """Search result entry: a heading line followed by the description."""
    heading = "{} {} - {} - {}".format(
        click.style("=>", fg="bright_black"),
        click.style(mod.title, fg="bright_blue"),
        click.style(mod.author, fg="blue"),
        click.style(mod.id, fg="bright_black"),
    )
    return f"{heading}\n{mod.description}\n"
