from __future__ import annotations

import http.client
import json
import logging
import time
import urllib.error
import urllib.request
from typing import Callable, Mapping, Optional, Sequence

from ..errors import NetworkFetchFailure
from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

HTTP_RETRIES = 3
HTTP_TIMEOUT_SECONDS = 20.0
HTTP_BACKOFF_BASE = 0.5
USER_AGENT_HEADERS = {"User-Agent": "workstation-provisioner/0.1"}

GO_VERSION_URL = "https://go.dev/VERSION?m=text"
GITHUB_API = "https://api.github.com"


def _is_retryable(exc: Exception) -> bool:
    if isinstance(exc, urllib.error.HTTPError):
        return exc.code >= 500 or exc.code == 429
    return isinstance(
        exc, (urllib.error.URLError, http.client.HTTPException, TimeoutError, ConnectionError)
    )


def fetch_text(
    url: str,
    *,
    retries: int = HTTP_RETRIES,
    timeout: float = HTTP_TIMEOUT_SECONDS,
    backoff_base: float = HTTP_BACKOFF_BASE,
    headers: Mapping[str, str] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """GET a URL and return its body as text.

    Only for idempotent reads (metadata, installer scripts). Connection errors,
    timeouts, truncated bodies, 5xx and 429 are retried with exponential
    backoff. Other HTTP errors and a body that is not UTF-8 fail on the first
    attempt. Raises NetworkFetchFailure.
    """

    req_headers = dict(USER_AGENT_HEADERS)
    req_headers.update(headers or {})
    attempts = max(1, retries)
    last_exc: Optional[Exception] = None
    attempt = 0

    while attempt < attempts:
        attempt += 1
        logger.debug("GET %s (attempt %d/%d)", url, attempt, attempts)
        try:
            req = urllib.request.Request(url, headers=req_headers)
            with urllib.request.urlopen(req, timeout=timeout) as resp:
                body = resp.read()
        except (urllib.error.URLError, http.client.HTTPException, TimeoutError, ConnectionError) as e:
            last_exc = e
            if not _is_retryable(e) or attempt == attempts:
                break
            delay = backoff_base * (2 ** (attempt - 1))
            logger.warning("GET %s failed (%s); retrying in %.1fs", url, e, delay)
            sleep(delay)
            continue

        try:
            return body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise NetworkFetchFailure(url, attempt, f"response is not UTF-8: {e}") from e

    raise NetworkFetchFailure(url, attempt, str(last_exc)) from last_exc


def latest_go_release(**kwargs) -> str:
    """Return the newest Go release name, e.g. 'go1.22.3'."""

    body = fetch_text(GO_VERSION_URL, **kwargs)
    first = body.strip().splitlines()[0].strip() if body.strip() else ""
    if not first.startswith("go"):
        raise NetworkFetchFailure(GO_VERSION_URL, 1, f"unexpected response: {first!r}")
    return first


def github_latest_tag(repo: str, **kwargs) -> str:
    url = f"{GITHUB_API}/repos/{repo}/releases/latest"
    body = fetch_text(url, headers={"Accept": "application/vnd.github+json"}, **kwargs)
    try:
        tag = json.loads(body).get("tag_name")
    except (ValueError, AttributeError) as e:
        raise NetworkFetchFailure(url, 1, f"invalid JSON: {e}") from e
    if not tag:
        raise NetworkFetchFailure(url, 1, "release has no tag_name")
    return str(tag)


def run_remote_script(
    url: str,
    *,
    interpreter: Sequence[str] = ("bash", "-s"),
    args: Sequence[str] = (),
    env: Mapping[str, str] | None = None,
    dry_run: bool = False,
) -> CmdResult:
    """Fetch an install script and pipe it into an interpreter.

    The fetch is retried; the execution is not. A half-finished installer is
    left for the operator (re-running the provisioner is safe).
    """

    argv = [*interpreter, *(["--", *args] if args else [])]
    if dry_run:
        logger.info("Would pipe %s into %s", url, " ".join(interpreter))
        return run_cmd(argv, dry_run=True)

    script = fetch_text(url)
    return run_cmd(argv, input_text=script, env=env)
