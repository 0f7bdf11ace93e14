"""Declarative backend configuration.

A YAML document lists backends; each entry sets exactly one kind:

    backends:
      - elasticsearch:
          address: http://es:9200
          index: logs-*
          query: '{"query": {"match": {"app": "$app"}}}'
          fields: {message: message, timestamp: "@timestamp", exclusions: ["^agent\\."]}
          routes: [{type: KubernetesPod, labels: {env: "prod,staging"}}]
      - file:
          - path: [app.log]
            labels: {app: demo}
            routes: [{}]

Relative file and kubeconfig paths are resolved against the directory of the
YAML file when it is loaded. Entries that fail validation are reported and
skipped; the rest still load.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from loghub.contracts.errors import ConfigurationError
from loghub.search.routes import RoutingRule
from loghub.utils.hash import content_hash

logger = logging.getLogger(__name__)


class _Spec(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class FieldsSpec(_Spec):
    """Which source fields hold the timestamp and message, and which fields to exclude."""

    timestamp: str = ""
    message: str = ""
    exclusions: list[str] = Field(default_factory=list)


class ElasticSearchSpec(_Spec):
    routes: list[RoutingRule] = Field(default_factory=list)
    address: str = ""
    query: str = ""
    index: str = ""
    namespace: str = ""
    fields: FieldsSpec = Field(default_factory=FieldsSpec)
    cloud_id: str = Field(default="", alias="cloudID")
    api_key: str = Field(default="", alias="apiKey")
    username: str = ""
    password: str = ""


class OpenSearchSpec(_Spec):
    routes: list[RoutingRule] = Field(default_factory=list)
    address: str = ""
    query: str = ""
    index: str = ""
    namespace: str = ""
    fields: FieldsSpec = Field(default_factory=FieldsSpec)
    username: str = ""
    password: str = ""


class KubernetesSpec(_Spec):
    routes: list[RoutingRule] = Field(default_factory=list)
    kubeconfig: str = Field(default="", description="Empty means the current kubeconfig")
    namespace: str = ""


class FileSpec(_Spec):
    routes: list[RoutingRule] = Field(default_factory=list)
    labels: dict[str, str] = Field(default_factory=dict)
    paths: list[str] = Field(
        default_factory=list, validation_alias=AliasChoices("paths", "path")
    )


class BackendSpec(_Spec):
    """One configured backend. Identity is the content hash, not the object."""

    elasticsearch: ElasticSearchSpec | None = None
    opensearch: OpenSearchSpec | None = None
    kubernetes: KubernetesSpec | None = None
    file: list[FileSpec] | None = Field(
        default=None, validation_alias=AliasChoices("file", "files")
    )

    @model_validator(mode="after")
    def _exactly_one_kind(self) -> "BackendSpec":
        kinds = [
            name
            for name in ("elasticsearch", "opensearch", "kubernetes", "file")
            if getattr(self, name) is not None
        ]
        if len(kinds) != 1:
            raise ValueError(
                f"a backend must set exactly one of elasticsearch, opensearch, kubernetes, file (got {kinds or 'none'})"
            )
        return self

    @property
    def kind(self) -> str:
        for name in ("elasticsearch", "opensearch", "kubernetes", "file"):
            if getattr(self, name) is not None:
                return name
        raise AssertionError("unreachable: validated backend has no kind")

    @property
    def content_hash(self) -> str:
        return content_hash(self.model_dump(mode="json", by_alias=True, exclude_none=True))

    def with_base_dir(self, base_dir: Path) -> "BackendSpec":
        """Join relative file and kubeconfig paths to ``base_dir``."""
        kube = self.kubernetes
        if kube is not None and kube.kubeconfig and not Path(kube.kubeconfig).is_absolute():
            return self.model_copy(
                update={"kubernetes": kube.model_copy(update={"kubeconfig": str(base_dir / kube.kubeconfig)})}
            )
        if self.file is None:
            return self
        files = [
            f.model_copy(
                update={"paths": [p if Path(p).is_absolute() else str(base_dir / p) for p in f.paths]}
            )
            for f in self.file
        ]
        return self.model_copy(update={"file": files})


@dataclass
class LoadedConfig:
    path: str = ""
    backends: list[BackendSpec] = field(default_factory=list)
    errors: list[ConfigurationError] = field(default_factory=list)


def parse_backends(data: Any, base_dir: Path | None = None) -> LoadedConfig:
    """Validate a parsed document; bad entries land in ``errors``."""
    loaded = LoadedConfig()
    if data is None:
        return loaded
    if not isinstance(data, dict):
        raise ConfigurationError(f"config must be a mapping, got {type(data).__name__}")
    entries = data.get("backends") or []
    if not isinstance(entries, list):
        raise ConfigurationError("'backends' must be a list")

    for i, entry in enumerate(entries):
        try:
            spec = BackendSpec.model_validate(entry)
        except ValidationError as e:
            error = ConfigurationError(f"backend #{i}: {e}")
            logger.error("Skipping invalid backend #%s: %s", i, e)
            loaded.errors.append(error)
            continue
        if base_dir is not None:
            spec = spec.with_base_dir(base_dir)
        loaded.backends.append(spec)
    return loaded


def load_config(path: str | Path) -> LoadedConfig:
    config_path = Path(path)
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigurationError(f"cannot read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"invalid YAML in {config_path}: {e}") from e

    loaded = parse_backends(data, base_dir=config_path.parent)
    loaded.path = str(config_path)
    logger.info(
        "Loaded %s backend(s) from %s (%s invalid)",
        len(loaded.backends),
        config_path,
        len(loaded.errors),
    )
    return loaded
