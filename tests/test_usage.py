"""Tests for reading pinned versions out of usage locations."""

import json

import httpx
import pytest

from helpers import make_client
from versioncheck.config.schema import PathsConfig, UsageSpec
from versioncheck.core.paths import GithubSource, LocalSource
from versioncheck.core.usage import (
    UsageContext,
    normalize_source,
    resolve_usage,
    usage_local_path,
)
from versioncheck.errors import ConfigError, FetchError, UsageError
from versioncheck.models.version import CommitVersion

SHA = "0e3cb4ba3b9bcafe0e3cb4ba3b9bcafe0e3cb4ba"

FLAKE_LOCK = json.dumps({
    "nodes": {
        "nixpkgs": {"locked": {"type": "github", "owner": "NixOS", "repo": "nixpkgs", "rev": SHA}},
        "root": {"inputs": {"nixpkgs": "nixpkgs"}},
    },
    "root": "root",
    "version": 7,
})


def usage(source: str, **parser) -> UsageSpec:
    return UsageSpec.model_validate({"type": "file", "source": source, "parser": parser})


class TestNormalizeSource:
    def test_local(self):
        assert normalize_source("/srv/infra/values.yaml") == LocalSource("/srv/infra/values.yaml")

    def test_github_blob_url(self):
        source = normalize_source("https://github.com/acme/infra/blob/main/apps/ingress/values.yaml")
        assert source == GithubSource(owner="acme", repo="infra", ref="main", path="apps/ingress/values.yaml")

    def test_github_without_scheme(self):
        source = normalize_source("github.com/acme/infra/blob/v1/flake.lock")
        assert source == GithubSource(owner="acme", repo="infra", ref="v1", path="flake.lock")

    def test_unsupported_host(self):
        with pytest.raises(ConfigError, match="Unsupported path"):
            normalize_source("https://gitlab.com/acme/infra/blob/main/file")

    def test_not_a_blob(self):
        with pytest.raises(ConfigError, match="Invalid github URL"):
            normalize_source("https://github.com/acme/infra/tree/main/apps")

    def test_missing_path(self):
        with pytest.raises(ConfigError):
            normalize_source("https://github.com/acme/infra/blob/main")


class TestParsers:
    @pytest.mark.asyncio
    async def test_yaml_query(self, tmp_path):
        f = tmp_path / "release.yaml"
        f.write_text("spec:\n  chart:\n    spec:\n      version: 4.1.0\n")

        version = await resolve_usage(usage(str(f), type="yaml", query="spec.chart.spec.version"), UsageContext())

        assert version.main == "4.1.0"

    @pytest.mark.asyncio
    async def test_yaml_query_with_regexp(self, tmp_path):
        f = tmp_path / "deploy.yaml"
        f.write_text("image: nginx:1.25.3\n")

        version = await resolve_usage(
            usage(str(f), type="yaml", query="image", regexp=":(.+)$"), UsageContext(),
        )

        assert version.main == "1.25.3"

    @pytest.mark.asyncio
    async def test_yaml_multi_document(self, tmp_path):
        f = tmp_path / "multi.yaml"
        f.write_text("kind: A\nversion: 1.0.0\n---\nkind: B\nversion: 2.0.0\n")

        version = await resolve_usage(
            usage(str(f), type="yaml", query="[?kind=='B'].version | [0]"), UsageContext(),
        )

        assert version.main == "2.0.0"

    @pytest.mark.asyncio
    async def test_json_is_yaml(self, tmp_path):
        f = tmp_path / "package.json"
        f.write_text(json.dumps({"dependencies": {"left-pad": "^1.3.0"}}))

        version = await resolve_usage(
            usage(str(f), type="yaml", query='dependencies."left-pad"', regexp=r"[\d.]+"), UsageContext(),
        )

        assert version.main == "1.3.0"

    @pytest.mark.asyncio
    async def test_yaml_query_not_found(self, tmp_path):
        f = tmp_path / "values.yaml"
        f.write_text("image: {}\n")

        with pytest.raises(UsageError, match="image.tag in .* not found"):
            await resolve_usage(usage(str(f), type="yaml", query="image.tag"), UsageContext())

    @pytest.mark.asyncio
    async def test_yaml_regexp_miss_is_an_error(self, tmp_path):
        f = tmp_path / "values.yaml"
        f.write_text("image: latest\n")

        with pytest.raises(UsageError, match="No match"):
            await resolve_usage(usage(str(f), type="yaml", query="image", regexp=r"(\d+\.\d+)"), UsageContext())

    @pytest.mark.asyncio
    async def test_regexp_parser(self, tmp_path):
        f = tmp_path / "Dockerfile"
        f.write_text("FROM alpine:3.19\nENV TOOL_VERSION=v0.8.1\n")

        version = await resolve_usage(
            usage(str(f), type="regexp", regexp=r"^ENV TOOL_VERSION=(\S+)$"), UsageContext(),
        )

        assert version.main == "0.8.1"

    @pytest.mark.asyncio
    async def test_regexp_parser_miss(self, tmp_path):
        f = tmp_path / "Dockerfile"
        f.write_text("FROM alpine\n")

        with pytest.raises(UsageError):
            await resolve_usage(usage(str(f), type="regexp", regexp=r"VERSION=(\S+)"), UsageContext())

    @pytest.mark.asyncio
    async def test_nix_flake_lock(self, tmp_path):
        f = tmp_path / "flake.lock"
        f.write_text(FLAKE_LOCK)

        version = await resolve_usage(usage(str(f), type="nix-flake"), UsageContext())

        assert isinstance(version, CommitVersion)
        assert version.sha == SHA

    @pytest.mark.asyncio
    async def test_nix_flake_missing_input(self, tmp_path):
        f = tmp_path / "flake.lock"
        f.write_text(FLAKE_LOCK)

        with pytest.raises(UsageError, match="home-manager"):
            await resolve_usage(usage(str(f), type="nix-flake", input="home-manager"), UsageContext())

    @pytest.mark.asyncio
    async def test_unreadable_file(self, tmp_path):
        with pytest.raises(UsageError, match="Failed to read file"):
            await resolve_usage(usage(str(tmp_path / "nope.yaml"), type="regexp", regexp="x"), UsageContext())


class TestSources:
    @pytest.mark.asyncio
    async def test_local_path_uses_aliases(self, tmp_path):
        (tmp_path / "values.yaml").write_text("version: 2.3.4\n")
        paths = PathsConfig(alias={"/alias": str(tmp_path)})

        version = await resolve_usage(
            usage("/alias/values.yaml", type="yaml", query="version"), UsageContext(paths=paths),
        )

        assert version.main == "2.3.4"

    @pytest.mark.asyncio
    async def test_github_with_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["ref"] = request.url.params.get("ref")
            seen["accept"] = request.headers.get("Accept")
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, text="version: 1.2.3\n", request=request)

        ctx = UsageContext(client=make_client(handler), tokens={"default": "t0", "acme": "t1"})
        version = await resolve_usage(
            usage("https://github.com/acme/infra/blob/prod/apps/values.yaml", type="yaml", query="version"), ctx,
        )

        assert version.main == "1.2.3"
        assert seen == {
            "path": "/repos/acme/infra/contents/apps/values.yaml",
            "ref": "prod",
            "accept": "application/vnd.github.raw",
            "auth": "Bearer t1",
        }

    @pytest.mark.asyncio
    async def test_github_with_token_non_200(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="Not Found", request=request)

        ctx = UsageContext(client=make_client(handler), tokens={"default": "t0"})
        with pytest.raises(FetchError) as exc:
            await resolve_usage(
                usage("https://github.com/acme/infra/blob/main/values.yaml", type="regexp", regexp="x"), ctx,
            )
        assert exc.value.status == 404

    @pytest.mark.asyncio
    async def test_github_through_path_mapping(self, tmp_path):
        checkout = tmp_path / "infra"
        (checkout / "apps").mkdir(parents=True)
        (checkout / "apps" / "values.yaml").write_text("version: 5.0.1\n")
        paths = PathsConfig(alias={"~src": str(tmp_path)}, github={"acme/infra": "~src/infra"})

        version = await resolve_usage(
            usage("https://github.com/acme/infra/blob/main/apps/values.yaml", type="yaml", query="version"),
            UsageContext(paths=paths),
        )

        assert version.main == "5.0.1"

    @pytest.mark.asyncio
    async def test_github_without_token_or_mapping(self):
        with pytest.raises(UsageError, match="requires a path mapping or a credential"):
            await resolve_usage(
                usage("https://github.com/acme/infra/blob/main/values.yaml", type="regexp", regexp="x"),
                UsageContext(),
            )


def test_usage_local_path():
    paths = PathsConfig(alias={"~src": "/home/me/src"}, github={"acme/infra": "~src/infra"})
    spec = usage("https://github.com/acme/infra/blob/main/apps/values.yaml", type="yaml", query="v")
    assert usage_local_path(spec, paths) == "/home/me/src/infra/apps/values.yaml"


def test_usage_local_path_requires_mapping():
    spec = usage("/srv/values.yaml", type="yaml", query="v")
    with pytest.raises(ConfigError, match="paths mapping"):
        usage_local_path(spec, None)
