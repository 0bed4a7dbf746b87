"""CLI entry points for the report intake service.

Provides command-line tools for:
- Normalizing a submission file without storing it
- Checking how text is classified
- Generating identifiers
- Pulling finished calls from the voice vendor
"""

import json
import sys

import click
from pydantic import ValidationError

from .. import __version__
from ..intake.classification import PriorityPolicy, get_classifier
from ..intake.exceptions import SubmissionValidationError
from ..intake.identifiers import IdentifierGenerator
from ..intake.models import (
    IdentifierKind,
    ManualSubmission,
    MapSubmission,
    ReportSource,
    VoiceSubmission,
)
from ..intake.normalizer import ReportNormalizer
from .vapi import vapi_group

SOURCES = {
    "manual": (ReportSource.MANUAL, ManualSubmission),
    "map": (ReportSource.MAP, MapSubmission),
    "voice": (ReportSource.VAPI, VoiceSubmission),
}


@click.group()
@click.version_option(version=__version__, prog_name="wbintake")
def main():
    """Whistleblower report intake.

    Command-line tools for normalizing, classifying and importing reports.
    """
    pass


@main.command("normalize")
@click.option(
    "--source",
    "-s",
    required=True,
    type=click.Choice(list(SOURCES)),
    help="Channel the submission came from",
)
@click.option(
    "--policy",
    type=click.Choice([p.value for p in PriorityPolicy]),
    default=PriorityPolicy.KEYWORDS.value,
    help="Priority policy (default: keywords)",
)
@click.argument("submission", type=click.File("r"))
def normalize_command(source: str, policy: str, submission) -> None:
    """Normalize a JSON submission and print the resulting case.

    SUBMISSION is a JSON file, or - for stdin. Nothing is stored.
    """
    report_source, model = SOURCES[source]

    try:
        data = json.load(submission)
        raw = model.model_validate(data).to_raw()
    except (json.JSONDecodeError, ValidationError) as e:
        click.echo(f"INVALID_REQUEST: {e}", err=True)
        sys.exit(1)

    try:
        case = ReportNormalizer(priority_policy=policy).normalize(raw, report_source)
    except SubmissionValidationError as e:
        click.echo(f"{e.code}: {e.details}", err=True)
        sys.exit(1)

    click.echo(json.dumps(case.model_dump(mode="json"), indent=2))


@main.command("classify")
@click.argument("text")
@click.option(
    "--policy",
    type=click.Choice([p.value for p in PriorityPolicy]),
    default=PriorityPolicy.KEYWORDS.value,
    help="Priority policy (default: keywords)",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def classify_command(text: str, policy: str, as_json: bool) -> None:
    """Show the category and priority assigned to TEXT."""
    result = get_classifier().classify(text, policy=policy)

    if as_json:
        click.echo(json.dumps(result.model_dump(), indent=2))
        return

    click.echo(f"Category: {result.category}")
    click.echo(f"Priority: {result.priority}")
    if result.matched_keywords:
        click.echo(f"Matched: {', '.join(result.matched_keywords)}")


@main.command("codes")
@click.option("--count", "-n", default=1, type=click.IntRange(min=1), help="Sets to generate")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def codes_command(count: int, as_json: bool) -> None:
    """Generate fresh case identifiers."""
    generator = IdentifierGenerator()
    sets = [{kind.value: generator.generate(kind) for kind in IdentifierKind} for _ in range(count)]

    if as_json:
        click.echo(json.dumps(sets, indent=2))
        return

    for codes in sets:
        click.echo(" ".join(f"{key}={value}" for key, value in codes.items()))


main.add_command(vapi_group, name="vapi")


if __name__ == "__main__":
    main()
