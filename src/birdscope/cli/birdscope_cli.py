"""BirdScope command line client.

Identify birds from photos or recordings, look up species media, search
bird names and manage local history, usage and feedback.
"""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click

from birdscope.core.container import Container
from birdscope.feedback.client import FeedbackRecord, FeedbackType
from birdscope.identification.errors import IdentificationError, describe_failure
from birdscope.identification.models import (
    CandidatesEvent,
    MediaEvent,
    ProgressEvent,
    StreamEvent,
)
from birdscope.identification.reconciler import IdentificationState, StreamOutcome
from birdscope.identification.sightings import to_bird_result
from birdscope.remote.errors import RemoteCallError
from birdscope.remote.session import UserSession
from birdscope.utils.structlog_configurator import configure_structlog


def _run(container: Container, body: Callable[[], Awaitable[Any]]) -> Any:  # noqa: ANN401
    """Run an async command body with local storage open, closing everything afterwards."""

    async def runner() -> Any:  # noqa: ANN401
        store = container.key_value_store()
        await store.initialize()
        try:
            return await body()
        finally:
            await store.dispose()
            await container.rest_client().aclose()

    return asyncio.run(runner())


def _print_event(event: StreamEvent, state: IdentificationState) -> None:
    if isinstance(event, ProgressEvent):
        click.echo(click.style(f"… {event.message}", fg="bright_black"), err=True)
    elif isinstance(event, CandidatesEvent):
        click.echo(f"Received {len(event.data)} candidates", err=True)
    elif isinstance(event, MediaEvent):
        click.echo(f"Media arrived for candidate {event.index + 1}", err=True)


@click.group()
@click.option("--user-id", envvar="BIRDSCOPE_USER_ID", help="Signed-in user id")
@click.option("--access-token", envvar="BIRDSCOPE_ACCESS_TOKEN", help="Session access token")
@click.option("--pro", is_flag=True, help="Treat the user as a subscriber")
@click.pass_context
def cli(ctx: click.Context, user_id: str | None, access_token: str | None, pro: bool) -> None:
    """BirdScope bird identification client."""
    ctx.ensure_object(dict)
    container = ctx.obj.setdefault("container", Container())

    config = container.config()
    configure_structlog(config)

    if user_id:
        container.session_context().sign_in(
            UserSession(user_id=user_id, access_token=access_token, is_privileged=pro)
        )


@cli.command()
@click.option("--image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--audio", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Print the results as JSON")
@click.pass_context
def identify(ctx: click.Context, image: Path | None, audio: Path | None, as_json: bool) -> None:
    """Identify a bird from a photo and/or a sound recording.

    Examples:
      # Identify a photo
      birdscope identify --image robin.jpg

      # Identify a recording and print JSON
      birdscope identify --audio dawn.m4a --json
    """
    if image is None and audio is None:
        raise click.UsageError("Provide --image and/or --audio")

    container: Container = ctx.obj["container"]

    async def body() -> IdentificationState | None:
        counter = container.usage_counter()
        await counter.fetch_count()
        if counter.gated:
            click.echo(
                click.style(
                    f"✗ You have used all {counter.limit} free identifications.", fg="red"
                ),
                err=True,
            )
            return None

        client = container.identification_client()
        state = await client.identify(
            image=image.read_bytes() if image else None,
            audio=audio.read_bytes() if audio else None,
            on_event=None if as_json else _print_event,
        )
        if state.candidates:
            await counter.increment()
        return state

    try:
        state = _run(container, body)
    except IdentificationError as e:
        click.echo(click.style(f"✗ {describe_failure(e)}", fg="red", bold=True), err=True)
        sys.exit(1)

    if state is None:
        sys.exit(2)

    results = [to_bird_result(candidate) for candidate in state.enriched]
    if as_json:
        click.echo(json.dumps(results, indent=2, default=str))
        return

    if not results:
        click.echo("No birds identified.")
        return

    for rank, result in enumerate(results, start=1):
        click.echo(
            f"{rank}. {result.get('name')} ({result.get('scientific_name')}) "
            f"{result.get('confidence', 0) * 100:.0f}%"
        )
        if result.get("fact"):
            click.echo(f"   {result['fact']}")
    if state.outcome is StreamOutcome.INTERRUPTED:
        click.echo(click.style("Connection lost before all details arrived.", fg="yellow"))


@cli.command()
@click.argument("scientific_name")
@click.pass_context
def media(ctx: click.Context, scientific_name: str) -> None:
    """Show reference media for a species by scientific name."""
    container: Container = ctx.obj["container"]

    async def body() -> dict[str, Any]:
        result = await container.media_client().fetch(scientific_name)
        return result.to_wire()

    try:
        payload = _run(container, body)
    except Exception as e:
        click.echo(click.style(f"✗ Error fetching media: {e}", fg="red", bold=True), err=True)
        sys.exit(1)

    click.echo(json.dumps(payload, indent=2))


@cli.command()
@click.argument("query")
@click.option("--save", is_flag=True, help="Record the top match in search history")
@click.pass_context
def search(ctx: click.Context, query: str, save: bool) -> None:
    """Search bird species by common or scientific name."""
    container: Container = ctx.obj["container"]

    async def body() -> list:
        suggestions = await container.search_client().search(query)
        if save and suggestions:
            await container.history_store().record(suggestions[0])
        return suggestions

    suggestions = _run(container, body)
    if not suggestions:
        click.echo("No matches.")
        return

    for suggestion in suggestions:
        click.echo(f"{suggestion.id:>8}  {suggestion.display_name} ({suggestion.name})")


@cli.group()
def history() -> None:
    """Manage recent search history."""


@history.command("list")
@click.pass_context
def list_history(ctx: click.Context) -> None:
    """List recently selected birds, newest first."""
    container: Container = ctx.obj["container"]
    entries = _run(container, lambda: container.history_store().list())

    if not entries:
        click.echo("No recent searches.")
        return

    for entry in entries:
        click.echo(f"{entry.id:>8}  {entry.display_name} ({entry.name})")


@history.command("clear")
@click.pass_context
def clear_history(ctx: click.Context) -> None:
    """Clear recent search history."""
    container: Container = ctx.obj["container"]
    _run(container, lambda: container.history_store().clear())
    click.echo(click.style("✓ Search history cleared", fg="green"))


@cli.command()
@click.pass_context
def usage(ctx: click.Context) -> None:
    """Show free identification usage for the signed-in user."""
    container: Container = ctx.obj["container"]

    async def body() -> Any:  # noqa: ANN401
        counter = container.usage_counter()
        await counter.fetch_count()
        return counter

    counter = _run(container, body)
    if counter.is_privileged:
        click.echo("Subscriber: unlimited identifications")
        return

    click.echo(f"Used: {counter.used}/{counter.limit}")
    click.echo(f"Remaining: {counter.remaining}")
    if counter.gated:
        click.echo(click.style("Free identifications used up", fg="yellow"))


@cli.command()
@click.argument("scientific_name")
@click.option(
    "--type",
    "feedback_type",
    type=click.Choice([t.value for t in FeedbackType]),
    required=True,
    help="Kind of feedback",
)
@click.option("--message", help="Free-text message")
@click.option("--section", help="Profile section the feedback refers to")
@click.option("--media-url", help="Media the feedback refers to")
@click.pass_context
def feedback(
    ctx: click.Context,
    scientific_name: str,
    feedback_type: str,
    message: str | None,
    section: str | None,
    media_url: str | None,
) -> None:
    """Send feedback about a species profile or identification."""
    container: Container = ctx.obj["container"]
    record = FeedbackRecord(
        scientific_name=scientific_name,
        feedback_type=FeedbackType(feedback_type),
        section_context=section,
        user_message=message,
        media_url=media_url,
    )

    try:
        _run(container, lambda: container.feedback_client().submit(record))
    except RemoteCallError as e:
        click.echo(
            click.style(f"✗ Error submitting feedback: {e.message}", fg="red", bold=True),
            err=True,
        )
        sys.exit(1)

    click.echo(click.style("✓ Thanks for your feedback!", fg="green"))


def main() -> None:
    """Entry point for the BirdScope CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
