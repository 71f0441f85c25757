"""Version parsers: pure, total functions from raw probe output to a version.

Every parser returns ``None`` on anything it does not recognise and never
raises. Parsers are looked up by name through ``PARSERS`` so that catalog
entries stay plain data.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable

from armprobe.catalog.models import ApplicationSignature

# Dotted numeric version, at least two components ("6.2", "5.7.0.3").
_V = r"(\d+(?:\.\d+)+)"

# A version printed on its own at the start of a line ("3.2.0 (Commit:...)").
_LEADING = re.compile(r"^\s*" + _V + r"\b", re.MULTILINE)

_POSTGRES = re.compile(r"(?:postgres|psql|PostgreSQL)\D*" + _V, re.IGNORECASE)
_REDIS_V = re.compile(r"v=" + _V, re.IGNORECASE)
_REDIS_VERSION = re.compile(r"(?:version|redis-cli)\s*" + _V, re.IGNORECASE)
_MONGODB = re.compile(r"(?:db|shell)\s*version\s*v?" + _V, re.IGNORECASE)
_MYSQL = re.compile(r"(?:Ver|version)\s+" + _V, re.IGNORECASE)
_KAFKA_VERSION = re.compile(r"version\s*" + _V, re.IGNORECASE)
_KAFKA_JAR = re.compile(r"kafka_\d+\.\d+-" + _V, re.IGNORECASE)
_AEROSPIKE = re.compile(r"(?:version|build)\s*[:\s]\s*" + _V, re.IGNORECASE)
_RABBITMQ = re.compile(r"(?:rabbitmq|version)\s*(?:server)?\s*v?" + _V, re.IGNORECASE)
_DOCKER = re.compile(r"Docker version\s*" + _V, re.IGNORECASE)
_KUBERNETES = re.compile(r"(?:Client|Server|k3s) Version:?\s*v?" + _V, re.IGNORECASE)
_KUBERNETES_FALLBACK = re.compile(r"Kubernetes v?" + _V, re.IGNORECASE)
_JENKINS = re.compile(
    r"(?:jenkins|version)\s*(?:version)?\s*(?:is)?\s*" + _V, re.IGNORECASE
)
_GITLAB_RUNNER = re.compile(r"Version:\s*" + _V, re.IGNORECASE)
_SEARCH_VERSION = re.compile(r"Version:\s*" + _V, re.IGNORECASE)
_CONFIG_VERSION = re.compile(r"""\bversion\s*[=:]\s*["']?v?""" + _V, re.IGNORECASE)


def _first(output: str, *patterns: re.Pattern[str]) -> str | None:
    for pattern in patterns:
        m = pattern.search(output)
        if m:
            return m.group(1)
    return None


def parse_postgresql(output: str) -> str | None:
    return _first(output, _POSTGRES)


def parse_redis(output: str) -> str | None:
    return _first(output, _REDIS_V, _REDIS_VERSION)


def parse_mongodb(output: str) -> str | None:
    return _first(output, _MONGODB)


def parse_mysql(output: str) -> str | None:
    return _first(output, _MYSQL)


def parse_kafka(output: str) -> str | None:
    """Direct ``--version`` output first, then a ``kafka_2.13-3.2.0.jar`` filename."""
    return _first(output, _KAFKA_VERSION, _KAFKA_JAR, _LEADING)


def parse_aerospike(output: str) -> str | None:
    # asinfo -v build prints only the bare number
    return _first(output, _AEROSPIKE, _LEADING)


def parse_rabbitmq(output: str) -> str | None:
    return _first(output, _RABBITMQ, _LEADING)


def _parse_search_engine(output: str, product: str) -> str | None:
    """Parse the JSON banner of a local status endpoint, falling back to regex.

    ``curl -s localhost:9200`` answers with ``{"version": {"number": "7.16.2"}}``;
    ``<product> --version`` prints a plain line instead. Malformed JSON, or
    JSON without a usable ``version.number``, falls through to the regex.
    """
    if '"version"' in output:
        try:
            number = json.loads(output)["version"]["number"]
        except (ValueError, TypeError, KeyError):
            number = None
        if isinstance(number, str):
            m = re.match(_V, number.strip())
            if m:
                return m.group(1)

    product_pattern = re.compile(
        product + r"\s*(?:version:?)?\s*" + _V, re.IGNORECASE
    )
    return _first(output, product_pattern, _SEARCH_VERSION)


def parse_elasticsearch(output: str) -> str | None:
    return _parse_search_engine(output, "elasticsearch")


def parse_opensearch(output: str) -> str | None:
    return _parse_search_engine(output, "opensearch")


def parse_docker(output: str) -> str | None:
    return _first(output, _DOCKER)


def parse_kubernetes(output: str) -> str | None:
    return _first(output, _KUBERNETES, _KUBERNETES_FALLBACK)


def parse_jenkins(output: str) -> str | None:
    # jenkins.war --version prints only the bare number
    return _first(output, _JENKINS, _LEADING)


def parse_gitlab_runner(output: str) -> str | None:
    return _first(output, _GITLAB_RUNNER)


def parse_generic(output: str) -> str | None:
    """First dotted numeric version anywhere in the output."""
    m = re.search(_V, output)
    return m.group(1) if m else None


def resolve_version_from_config(text: str) -> str | None:
    """Extract a ``version = "3.9.4"`` style assignment from config content."""
    return _first(text, _CONFIG_VERSION)


PARSERS: dict[str, Callable[[str], str | None]] = {
    "postgresql": parse_postgresql,
    "redis": parse_redis,
    "mongodb": parse_mongodb,
    "mysql": parse_mysql,
    "kafka": parse_kafka,
    "aerospike": parse_aerospike,
    "rabbitmq": parse_rabbitmq,
    "elasticsearch": parse_elasticsearch,
    "opensearch": parse_opensearch,
    "docker": parse_docker,
    "kubernetes": parse_kubernetes,
    "jenkins": parse_jenkins,
    "gitlab_runner": parse_gitlab_runner,
    "generic": parse_generic,
}


def get_parser(name: str) -> Callable[[str], str | None]:
    try:
        return PARSERS[name]
    except KeyError:
        raise ValueError(f"Unknown version parser: {name}") from None


def parse_version(signature: ApplicationSignature, output: str) -> str | None:
    """Apply a signature's parser to raw probe output."""
    if not output:
        return None
    return get_parser(signature.parser)(output) or None
