"""The git log invocation and its wire format.

One record per commit::

    RS <hash> US <parents> US <author name> US <author email> US <author date>
    US <subject> US LF <body> US LF LF <numstat lines>

RS (0x1E) separates records and US (0x1F) separates fields. A record
boundary is RS immediately followed by a full hex hash and US, so control
bytes that happen to appear inside a message body never split a record.
The subject never contains a newline (git folds it), which is how the
parser finds the end of the subject even when the subject itself
contains US. The numstat block is everything after the last US.

This format is a compatibility contract with the reconstructor and the
parser. Changing it breaks both.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from ..exceptions import InvalidConfigError

if TYPE_CHECKING:
    from ..config import AnalysisOptions

RS = b"\x1e"
US = b"\x1f"
RS_STR = "\x1e"
US_STR = "\x1f"

LOG_FORMAT = "%x1e%H%x1f%P%x1f%an%x1f%ae%x1f%aI%x1f%s%x1f%n%b%x1f"

# SHA-1 or SHA-256 object names.
HASH_RE = re.compile(r"^(?:[0-9a-f]{40}|[0-9a-f]{64})$")
RECORD_BOUNDARY_RE = re.compile(rb"\x1e(?:[0-9a-f]{64}|[0-9a-f]{40})\x1f")
# Longest boundary: RS + 64 hex + US.
MAX_BOUNDARY_LEN = 66


def build_log_args(options: "AnalysisOptions") -> list[str]:
    """Arguments after ``git -C <repo>`` for the single history query.

    Only read-only history options are emitted.
    """
    args = [
        "-c",
        "core.quotepath=off",
        "-c",
        "log.showSignature=false",
        "log",
        "--no-color",
        "--numstat",
        "-M",
        "--date-order",
        f"--format={LOG_FORMAT}",
    ]

    if options.since:
        args.append(f"--since={options.since}")
    elif options.days:
        args.append(f"--since={options.days} days ago")
    if options.until:
        args.append(f"--until={options.until}")
    if options.author:
        args.append(f"--author={options.author}")
    if options.max_count:
        args.append(f"--max-count={options.max_count}")
    if not options.include_merges:
        args.append("--no-merges")

    # Refs must not be mistaken for options.
    for ref in options.branches:
        if ref.startswith("-"):
            raise InvalidConfigError("branches", ref, "ref names cannot start with '-'")
    args.extend(options.branches)

    if options.paths:
        args.append("--")
        args.extend(options.paths)

    return args
