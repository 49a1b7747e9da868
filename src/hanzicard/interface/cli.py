"""hanzicard CLI: capture, lookup, review and library commands."""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Annotated

import typer

from hanzicard.application import factory, library, scheduler
from hanzicard.application.config import resolve_config
from hanzicard.application.study_session import StudySession
from hanzicard.application.utils.script import unique_chinese_characters
from hanzicard.domain.errors import PhotoStorageError
from hanzicard.domain.models import CharacterStatus, ReviewRating
from hanzicard.infrastructure.dictionary import load_default_phrases
from hanzicard.interface._common import (
    _resolve_with_overrides,
    format_card,
    format_info,
    format_word,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="hanzicard: look up Chinese characters from photos and review them with SM-2.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage hanzicard configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for hanzicard."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose


def _verbose(ctx: typer.Context) -> int:
    return (ctx.obj or {}).get("verbose_bonus", 1)


def parse_rating(value: str) -> ReviewRating:
    """Accept a rating as 1-4 or by name (again, hard, good, easy)."""
    value = value.strip().lower()
    if value.isdigit():
        try:
            return ReviewRating(int(value))
        except ValueError as e:
            raise typer.BadParameter(f"Rating must be 1-4, got {value}") from e
    try:
        return ReviewRating[value.upper()]
    except KeyError as e:
        raise typer.BadParameter(f"Unknown rating: {value}") from e


# ---------------------------------------------------------------------------
# Lookup commands
# ---------------------------------------------------------------------------


@app.command()
def analyze(
    ctx: typer.Context,
    text: Annotated[str, typer.Argument(help="Chinese text to analyze.")],
):
    """[bold green]Analyze[/bold green] text: every character plus detected words."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    chars = unique_chinese_characters(text)
    if not chars:
        typer.secho("No Chinese characters in input.", fg="yellow")
        raise typer.Exit(1)

    async def _run():
        client = factory.get_messages_client(config)
        try:
            resolver = factory.get_resolver(config, client)
            return await resolver.analyze(text, chars)
        finally:
            await client.aclose()

    result = asyncio.run(_run())

    if result.words:
        typer.secho("Words:", bold=True)
        for word in result.words:
            typer.echo(f"  {format_word(word)}")
        typer.echo("")

    typer.secho("Characters:", bold=True)
    for char in chars:
        typer.echo(format_info(char, result.characters[char]))

    phrases = load_default_phrases().find_phrases(text)
    if phrases:
        typer.echo("")
        typer.secho("Common phrases:", bold=True)
        for phrase, info in phrases:
            typer.echo(f"  {phrase}  {info.pinyin}  {info.meaning}")


@app.command()
def lookup(
    ctx: typer.Context,
    characters: Annotated[list[str], typer.Argument(help="Characters to look up.")],
):
    """Look up one or more characters."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    chars = unique_chinese_characters("".join(characters))
    if not chars:
        typer.secho("No Chinese characters in input.", fg="yellow")
        raise typer.Exit(1)

    async def _run():
        client = factory.get_messages_client(config)
        try:
            return await factory.get_resolver(config, client).lookup_many(chars)
        finally:
            await client.aclose()

    results = asyncio.run(_run())
    for char in chars:
        typer.echo(format_info(char, results[char]))


@app.command()
def capture(
    ctx: typer.Context,
    image: Annotated[Path, typer.Argument(help="Photo containing Chinese text.")],
    save: Annotated[
        bool, typer.Option("--save", help="Save the photo and all characters as cards.")
    ] = False,
):
    """[bold green]Capture[/bold green] a photo: OCR, look up, optionally save."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    if not image.is_file():
        typer.secho(f"Image not found: {image}", fg="red", err=True)
        raise typer.Exit(2)

    data = image.read_bytes()

    async def _run():
        client = factory.get_messages_client(config)
        try:
            service = factory.get_capture_service(config, client)
            await service.process_image(data)
            return service
        finally:
            await client.aclose()

    service = asyncio.run(_run())
    state = service.state
    if state.error is not None:
        typer.secho(state.status.message, fg="red", err=True)
        raise typer.Exit(1)

    typer.secho(f"Text: {state.ocr_text}", bold=True)
    for word in state.words:
        typer.echo(f"  {format_word(word)}")
    for analyzed in state.characters:
        typer.echo(format_info(analyzed.character, analyzed.info))
    for phrase, info in state.phrases:
        typer.echo(f"  [phrase] {phrase}  {info.pinyin}  {info.meaning}")

    if not save:
        return

    try:
        photo = service.save_to_history()
    except PhotoStorageError as e:
        typer.secho(f"Could not save photo: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    for analyzed in state.characters:
        service.save_character(analyzed.character)
    typer.secho(
        f"Saved photo {photo.id} and {len(state.characters)} characters.", fg="green"
    )


# ---------------------------------------------------------------------------
# Review commands
# ---------------------------------------------------------------------------


@app.command()
def due(ctx: typer.Context):
    """List cards due for review."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    repo = factory.get_repository(config)
    cards = scheduler.get_due_cards(repo.all_cards())
    if not cards:
        typer.secho("No cards due.", fg="green")
        return
    typer.echo(f"Due cards: {len(cards)}")
    for card in cards:
        typer.echo(format_card(card))


@app.command()
def review(
    ctx: typer.Context,
    character: Annotated[str, typer.Argument(help="Saved character to review.")],
    rating: Annotated[str, typer.Argument(help="again | hard | good | easy (or 1-4).")],
):
    """Apply a single review rating to a saved card."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    parsed = parse_rating(rating)
    repo = factory.get_repository(config)
    card = repo.get_card(character)
    if card is None:
        typer.secho(f"No saved card for {character}", fg="red", err=True)
        raise typer.Exit(1)

    result = scheduler.apply_review(card, parsed, tz=config.tzinfo)
    repo.update_card(card)
    typer.echo(
        f"{character}: {parsed.label} -> next in {result.interval}d, "
        f"ease {result.ease_factor:.2f}, {result.status.display_name}"
    )


@app.command()
def study(ctx: typer.Context):
    """Interactive review session over all due cards."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    repo = factory.get_repository(config)
    session = StudySession(tz=config.tzinfo)
    session.load_due_cards(repo.all_cards())

    if not session.deck:
        typer.secho("No cards due. Come back later!", fg="green")
        return

    while (card := session.current_card) is not None:
        typer.echo("")
        typer.secho(
            f"[{session.current_index + 1}/{len(session.deck)}]  {card.character}", bold=True
        )
        typer.prompt("Press Enter to reveal", default="", show_default=False)
        session.flip()
        typer.echo(f"  {card.pinyin}  {card.meaning}")
        if card.context:
            typer.echo(f"  context: {card.context}")

        answer = typer.prompt("Rating (1 again, 2 hard, 3 good, 4 easy, q quit)")
        if answer.strip().lower() == "q":
            break
        try:
            rating = parse_rating(answer)
        except typer.BadParameter as e:
            typer.secho(str(e), fg="yellow")
            continue
        result = session.rate(rating)
        repo.update_card(card)
        typer.echo(f"  next review in {result.interval}d")

    stats = session.stats
    typer.echo("")
    typer.secho(
        f"Reviewed {stats.reviewed}, correct {stats.correct} ({stats.accuracy:.0f}%)",
        fg="green",
    )


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------


@app.command("library")
def library_cmd(
    ctx: typer.Context,
    status: Annotated[
        CharacterStatus | None, typer.Option("--status", help="Only cards in this status.")
    ] = None,
    search: Annotated[
        str, typer.Option("--search", "-s", help="Match character, pinyin or meaning.")
    ] = "",
):
    """List saved characters, newest first."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    cards = factory.get_repository(config).all_cards()

    counts = library.status_counts(cards)
    typer.echo(
        "  ".join(f"{s.display_name}: {n}" for s, n in counts.items())
    )
    filtered = library.filter_cards(cards, search_text=search, status=status)
    if not filtered:
        typer.secho("No cards found.", fg="yellow")
        return
    for card in filtered:
        typer.echo(format_card(card))


@app.command()
def photos(ctx: typer.Context):
    """List saved photo analyses, newest first."""
    config = _resolve_with_overrides(verbose=_verbose(ctx))
    saved = factory.get_repository(config).all_photos()
    if not saved:
        typer.secho("No saved photos.", fg="yellow")
        return
    for photo in saved:
        when = photo.captured_at.strftime("%Y-%m-%d %H:%M")
        chars = "".join(photo.character_ids) or "-"
        typer.echo(f"{photo.id}  {when}  {photo.ocr_text[:30]!r}  saved: {chars}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = config.model_dump()
    d["anthropic_api_key"] = "********" if config.anthropic_api_key.get_secret_value() else ""
    d = {k: str(v) if isinstance(v, Path) else v for k, v in d.items()}
    typer.echo(json.dumps(d, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@app.command()
def server(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
):
    """Run the HTTP API server."""
    import uvicorn

    typer.echo(f"Starting hanzicard server on {host}:{port}")
    uvicorn.run("hanzicard.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    app()
