"""Pull request comments describing a validation run.

Uploading step output and rendering the comment are separate: call
upload_step_outputs() first to get a paste URL per step, then hand those URLs
to render_build_status_comment(), which does no I/O.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from thumbs_core.config import is_reviewer_count
from thumbs_core.reviews import ReviewComment, org_from_repo
from thumbs_core.status import BuildStatus, StepResult, StepStatus

logger = logging.getLogger(__name__)

_RESULT_IMAGES = {
    "ok": ":white_check_mark:",
    "warning": ":warning:",
    "error": ":no_entry:",
}


def result_image(result: StepResult | str | None) -> str:
    key = result.value if isinstance(result, StepResult) else result
    return _RESULT_IMAGES.get(key or "", "")


def upload_step_outputs(build_status: BuildStatus, create_paste: Callable[[str, str], str]) -> dict[str, str]:
    """Upload each step's output and return ``{step_name: url}``.

    Steps without output are skipped.
    """
    urls: dict[str, str] = {}
    for step in build_status:
        if not step.output:
            continue
        urls[step.name] = create_paste(f"{step.name}.txt", step.output)
    return urls


def _render_step(step: StepStatus, paste_url: str | None) -> str:
    result = step.result.value.upper() if step.result else "PENDING"
    started = step.started_at.strftime("%Y-%m-%d %H:%M")
    duration = step.duration_seconds
    exit_code = step.exit_code if step.exit_code is not None else result
    link = f'> <a href="{paste_url}">:page_facing_up:</a>\n' if paste_url else ""
    return (
        "<details>\n"
        f" <summary>{result_image(step.result)} {step.name.upper()}   {result} </summary>\n\n"
        " <p>\n\n"
        f"> Started at: {started}\n"
        f"> Duration: {duration if duration is not None else ''} seconds.\n"
        f"> Result:  {result}\n"
        f"> Message: {step.message}\n"
        f"> Exit Code:  {exit_code}\n"
        f"{link}"
        "</p>\n\n"
        "```\n\n"
        f"{step.command or ''}\n\n"
        f"{step.output}\n\n"
        "```\n\n"
        "--------------------------------------------------\n\n"
        "</details>\n"
    )


def render_build_status_comment(
    build_status: BuildStatus,
    paste_urls: dict[str, str],
    review_count: int,
    minimum_reviewers: int,
    repo: str,
    org_mode: bool = False,
) -> str:
    if build_status.all_steps_ok():
        title = "Looks good!  :+1:"
    else:
        title = f"Looks like there's an issue with build step {','.join(build_status.problem_steps())} !  :cloud: "

    parts = [f"<p>Build Status: {title}</p>\n"]
    for step in build_status:
        parts.append(_render_step(step, paste_urls.get(step.name)))

    enough = is_reviewer_count(minimum_reviewers) and review_count >= minimum_reviewers
    review_status = "ok" if enough else "warning"
    org_msg = f" from organization {org_from_repo(repo)}" if org_mode else "."
    parts.append(
        f"\n{result_image(review_status)} {review_count} of {minimum_reviewers} Code reviews{org_msg}\n"
    )
    return "\n".join(parts)


def render_reviewers_comment(reviews: Iterable[ReviewComment]) -> str:
    reviewers: list[str] = []
    for review in reviews:
        handle = f"*@{review.author_login}*"
        if handle not in reviewers:
            reviewers.append(handle)
    return f"Code reviews from: {', '.join(reviewers)}."
