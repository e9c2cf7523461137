"""Synthetic log line generator.

Builds deterministic, seeded lines in two common shapes:
- syslog (``Mar 16 00:01:25 host program[pid]: message``)
- apache combined access log

Each line comes with the fields it was built from, so evaluation and benchmarks
can run without real data.
"""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

# "->" on the first key absorbs the double space syslog uses before single digit days
SYSLOG_PATTERN = (
    "%{timestamp->} %{+timestamp} %{+timestamp} %{logsource} %{program}[%{pid}]: %{message}"
)
APACHE_PATTERN = (
    '%{clientip} %{ident} %{auth} [%{timestamp}] "%{verb} %{request} HTTP/%{httpversion}" '
    '%{response} %{bytes} "%{referrer}" "%{agent}"'
)
PATTERNS: dict[str, str] = {"syslog": SYSLOG_PATTERN, "apache": APACHE_PATTERN}
APPEND_SEPARATORS: dict[str, str] = {"syslog": " ", "apache": ""}
DEFAULT_KIND = "syslog"

_HOSTS: Sequence[str] = ("evita", "camomile", "relay01", "gw-east", "db-primary")
_PROGRAMS: Sequence[str] = ("postfix/smtpd", "sshd", "cron", "kernel", "nginx")
_MESSAGES: Sequence[str] = (
    "connect from camomile.cloud9.net[168.100.1.3]",
    "Accepted publickey for deploy from 10.0.0.12 port 52144 ssh2",
    "(root) CMD (run-parts /etc/cron.hourly)",
    "eth0: link up, 1000Mbps, full-duplex",
    "disconnect from unknown[31.184.238.164]",
)
_VERBS: Sequence[str] = ("GET", "POST", "PUT", "DELETE")
_REQUESTS: Sequence[str] = ("/", "/logs/access.log", "/api/v1/items", "/index.html", "/favicon.ico")
_AGENTS: Sequence[str] = (
    "Mozilla/5.0 (Windows NT 6.1; WOW64) AppleWebKit/537.36 (KHTML, like Gecko)",
    "curl/8.4.0",
    "python-requests/2.31.0",
)
_STATUSES: Sequence[int] = (200, 200, 200, 301, 404, 500)


@dataclass
class SampleLine:
    text: str
    fields: dict[str, str]


def _syslog_line(rng: random.Random, when: datetime) -> SampleLine:
    fields = {
        "timestamp": f"{when:%b} {when.day} {when:%H:%M:%S}",
        "logsource": rng.choice(_HOSTS),
        "program": rng.choice(_PROGRAMS),
        "pid": str(rng.randint(100, 65_000)),
        "message": rng.choice(_MESSAGES),
    }
    text = (
        f"{when:%b} {when.day:>2} {when:%H:%M:%S} {fields['logsource']} "
        f"{fields['program']}[{fields['pid']}]: {fields['message']}"
    )
    return SampleLine(text=text, fields=fields)


def _apache_line(rng: random.Random, when: datetime) -> SampleLine:
    fields = {
        "clientip": ".".join(str(rng.randint(1, 254)) for _ in range(4)),
        "ident": "-",
        "auth": "-",
        "timestamp": f"{when:%d/%b/%Y:%H:%M:%S} +0000",
        "verb": rng.choice(_VERBS),
        "request": rng.choice(_REQUESTS),
        "httpversion": rng.choice(("1.0", "1.1")),
        "response": str(rng.choice(_STATUSES)),
        "bytes": str(rng.randint(0, 120_000)),
        "referrer": "-",
        "agent": rng.choice(_AGENTS),
    }
    text = (
        f"{fields['clientip']} {fields['ident']} {fields['auth']} [{fields['timestamp']}] "
        f'"{fields["verb"]} {fields["request"]} HTTP/{fields["httpversion"]}" '
        f'{fields["response"]} {fields["bytes"]} "{fields["referrer"]}" "{fields["agent"]}"'
    )
    return SampleLine(text=text, fields=fields)


def generate_sample_lines(
    kind: str = DEFAULT_KIND, count: int = 8, *, seed: int = 1234
) -> list[SampleLine]:
    """Generate ``count`` reproducible lines of the given kind (syslog | apache)."""
    if kind not in PATTERNS:
        raise ValueError(f"Unknown sample kind '{kind}'. Choose from {sorted(PATTERNS)}.")
    rng = random.Random(seed)
    base = datetime(2023, 1, 1)
    builder = _syslog_line if kind == "syslog" else _apache_line
    lines: list[SampleLine] = []
    for _ in range(count):
        when = base + timedelta(seconds=rng.randint(0, 365 * 24 * 3600))
        lines.append(builder(rng, when))
    return lines
