"""Configuration documents: tracked dependencies and path mappings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Literal, TypeVar, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, RootModel, ValidationError

from versioncheck.errors import ConfigError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class _Spec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)


class BaseFetch(_Spec):
    version_spec: str | None = Field(default=None, alias="versionSpec")
    prerelease: bool = False


class GithubReleaseFetch(BaseFetch):
    type: Literal["github_release"]
    owner: str
    repo: str
    regexp: str | None = None


class GithubTagFetch(BaseFetch):
    type: Literal["github_tag"]
    owner: str
    repo: str
    regexp: str | None = None


class GithubCommitFetch(BaseFetch):
    type: Literal["github_commit"]
    owner: str
    repo: str
    ref: str = "HEAD"
    private: bool = False


class HtmlFetch(BaseFetch):
    type: Literal["html"]
    url: str
    selector: str
    regexp: str | None = None


class HelmFetch(BaseFetch):
    type: Literal["helm"]
    repo: str
    chart: str


class ChannelSnapshotFetch(BaseFetch):
    type: Literal["channel-snapshot"]
    url: str = "https://nix-releases.s3.amazonaws.com"
    prefix: str = "nixpkgs/nixpkgs-"


FetchSpec = Annotated[
    Union[
        GithubReleaseFetch,
        GithubTagFetch,
        GithubCommitFetch,
        HtmlFetch,
        HelmFetch,
        ChannelSnapshotFetch,
    ],
    Field(discriminator="type"),
]


class RegexpParser(_Spec):
    type: Literal["regexp"]
    regexp: str


class YamlParser(_Spec):
    type: Literal["yaml"]
    query: str
    regexp: str | None = None


class NixFlakeParser(_Spec):
    type: Literal["nix-flake"]
    input: str = "nixpkgs"


UsageParser = Annotated[
    Union[RegexpParser, YamlParser, NixFlakeParser],
    Field(discriminator="type"),
]


class UsageSpec(_Spec):
    type: Literal["file"] = "file"
    source: str
    parser: UsageParser


class DependencyEntry(_Spec):
    upstream: FetchSpec
    usages: dict[str, UsageSpec] = Field(default_factory=dict)


class Config(RootModel[dict[str, DependencyEntry]]):
    def __getitem__(self, name: str) -> DependencyEntry:
        return self.root[name]

    def __contains__(self, name: object) -> bool:
        return name in self.root

    def items(self):
        return self.root.items()

    def entry(self, name: str) -> DependencyEntry:
        if name not in self.root:
            raise ConfigError(f"{name} not found in config")
        return self.root[name]


class PathsConfig(_Spec):
    alias: dict[str, str] = Field(default_factory=dict)
    github: dict[str, str] = Field(default_factory=dict)


def _format_errors(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
        for err in exc.errors()
    )


def parse_document(data: object, model: type[ModelT], origin: str = "<document>") -> ModelT:
    """Validate an already-parsed YAML/JSON document against *model*."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {origin}: {_format_errors(exc)}") from exc


def load_yaml(path: Path, model: type[ModelT]) -> ModelT:
    """Load a YAML file and validate it against *model*."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {path}: {exc}") from exc
    logger.debug("Loaded %s", path)
    return parse_document(data, model, origin=str(path))


def load_config(path: Path) -> Config:
    return load_yaml(path, Config)


def load_paths(path: Path | None) -> PathsConfig | None:
    """Load the path mapping file; a missing default file means no mapping."""
    if path is None or not path.exists():
        logger.debug("No paths mapping at %s", path)
        return None
    return load_yaml(path, PathsConfig)


def describe_spec(spec: BaseFetch) -> str:
    """Short human label for an upstream, used in error messages."""
    if isinstance(spec, (GithubReleaseFetch, GithubTagFetch, GithubCommitFetch)):
        text = f"gh:{spec.owner}/{spec.repo}"
    elif isinstance(spec, HtmlFetch):
        text = f"{spec.url} {spec.selector}"
    elif isinstance(spec, HelmFetch):
        text = f"helm:{spec.chart}/{spec.repo}"
    elif isinstance(spec, ChannelSnapshotFetch):
        text = f"channel:{spec.prefix}"
    else:
        text = type(spec).__name__
    if spec.version_spec:
        text += f" ({spec.version_spec})"
    return text
