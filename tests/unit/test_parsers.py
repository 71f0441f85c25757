"""Tests for catalog version parsers."""

from __future__ import annotations

import pytest

from armprobe.catalog.parsers import (
    PARSERS,
    get_parser,
    parse_aerospike,
    parse_docker,
    parse_elasticsearch,
    parse_generic,
    parse_gitlab_runner,
    parse_jenkins,
    parse_kafka,
    parse_kubernetes,
    parse_mongodb,
    parse_mysql,
    parse_opensearch,
    parse_postgresql,
    parse_rabbitmq,
    parse_redis,
    parse_version,
    resolve_version_from_config,
)
from armprobe.catalog.signatures import CATALOG, get_signature


class TestRealWorldOutput:
    def test_postgresql(self):
        assert parse_postgresql("postgres (PostgreSQL) 14.5") == "14.5"
        assert parse_postgresql("psql (PostgreSQL) 13.4 (Ubuntu 13.4-1)") == "13.4"

    def test_redis(self):
        out = "Redis server v=6.2.6 sha=00000000:0 malloc=jemalloc-5.1.0 bits=64"
        assert parse_redis(out) == "6.2.6"
        assert parse_redis("redis-cli 7.0.11") == "7.0.11"

    def test_mongodb(self):
        assert parse_mongodb("db version v5.0.9\nBuild Info: {") == "5.0.9"
        assert parse_mongodb("MongoDB shell version v4.4.6") == "4.4.6"

    def test_mysql(self):
        assert parse_mysql("mysql  Ver 8.0.30 for Linux on x86_64") == "8.0.30"
        assert parse_mysql("/usr/sbin/mysqld  Ver 8.0.30-0ubuntu0.20.04.2") == "8.0.30"

    def test_kafka_version_line(self):
        assert parse_kafka("3.2.0 (Commit:38103ffaa962ef50)") == "3.2.0"

    def test_kafka_jar_filename(self):
        assert parse_kafka("/opt/kafka/libs/kafka_2.13-3.2.0.jar") == "3.2.0"

    def test_aerospike_four_components(self):
        out = "Aerospike Enterprise Edition build 5.7.0.3"
        assert parse_aerospike(out) == "5.7.0.3"
        assert parse_aerospike("6.1.0.2\n") == "6.1.0.2"

    def test_rabbitmq(self):
        assert parse_rabbitmq("3.9.13\n") == "3.9.13"
        assert parse_rabbitmq("RabbitMQ version 3.11.2") == "3.11.2"

    def test_docker(self):
        out = "Docker version 20.10.18, build b40c2f6"
        assert parse_docker(out) == "20.10.18"

    def test_kubernetes(self):
        assert parse_kubernetes("Client Version: v1.28.2") == "1.28.2"
        assert parse_kubernetes("Kubernetes v1.27.1") == "1.27.1"
        assert parse_kubernetes("k3s version v1.27.4+k3s1 (36645e73)") == "1.27.4"

    def test_jenkins(self):
        assert parse_jenkins("2.346.3\n") == "2.346.3"

    def test_gitlab_runner(self):
        out = "Version:      16.4.0\nGit revision: 6e766faf"
        assert parse_gitlab_runner(out) == "16.4.0"

    def test_generic(self):
        assert parse_generic("tool release 1.2.3 (stable)") == "1.2.3"


class TestSearchEngineJsonFallback:
    def test_json_banner(self):
        banner = '{"name": "node-1", "version": {"number": "7.16.2", "build_type": "deb"}}'
        assert parse_elasticsearch(banner) == "7.16.2"

    def test_json_snapshot_qualifier_dropped(self):
        banner = '{"version": {"number": "8.0.0-SNAPSHOT"}}'
        assert parse_elasticsearch(banner) == "8.0.0"

    def test_malformed_json_falls_back_to_regex(self):
        out = '{"version": truncated... opensearch version: 2.11.0'
        assert parse_opensearch(out) == "2.11.0"

    def test_json_without_number_falls_back(self):
        out = '{"version": {"distribution": "opensearch"}}'
        assert parse_opensearch(out) is None

    def test_json_with_wrong_shape(self):
        assert parse_elasticsearch('{"version": "7.10.2"}') is None
        assert parse_elasticsearch('["version"]') is None

    def test_plain_version_output(self):
        out = "Version: 7.17.9, Build: default/deb/ef48222227ee6b9e70e502f0f0daa52435ee634d"
        assert parse_elasticsearch(out) == "7.17.9"


class TestTotality:
    @pytest.mark.parametrize("name", sorted(PARSERS))
    @pytest.mark.parametrize(
        "garbage",
        ["", "\x00\xff", "{", '{"version": null}', "version = ", "v=", "." * 1000],
    )
    def test_never_raises(self, name, garbage):
        assert get_parser(name)(garbage) is None

    def test_unknown_parser_name(self):
        with pytest.raises(ValueError):
            get_parser("nope")


class TestCatalog:
    def test_every_signature_has_a_parser(self):
        for signature in CATALOG:
            assert signature.parser in PARSERS

    def test_keys_are_unique(self):
        keys = [s.key for s in CATALOG]
        assert len(keys) == len(set(keys))

    def test_get_signature(self):
        assert get_signature("redis").process_patterns == ("redis-server",)
        with pytest.raises(KeyError):
            get_signature("cobol")

    def test_parse_version_dispatches(self):
        redis = get_signature("redis")
        assert parse_version(redis, "v=6.2.6") == "6.2.6"
        assert parse_version(redis, "") is None


class TestConfigVersion:
    def test_quoted_assignment(self):
        assert resolve_version_from_config('name = "app"\nversion = "3.9.4"\n') == "3.9.4"

    def test_unquoted_and_colon(self):
        assert resolve_version_from_config("version: 2.1\n") == "2.1"
        assert resolve_version_from_config("version=10.0.1") == "10.0.1"

    def test_ignores_other_keys(self):
        assert resolve_version_from_config("api_version_x 1\nport = 5432") is None
