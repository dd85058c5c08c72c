"""Console output helpers shared by the pipeline stages."""

import click


def info(message: str) -> None:
    click.echo(message)


def detail(message: str) -> None:
    click.echo(click.style(f"  {message}", fg="bright_black"))


def warn(message: str) -> None:
    click.echo(click.style(f"⚠  {message}", fg="yellow"), err=True)


def error(message: str) -> None:
    click.echo(click.style(message, fg="red", bold=True), err=True)


def success(message: str) -> None:
    click.echo(f"{click.style('✓', fg='green', bold=True)} {message}")
