"""Provider adapters turning raw Git-host webhooks into a ``Payload``.

Each adapter knows one host's wire format, its canonical origin, how to
build a clone URL and which addresses its webhooks are sent from. The
check order in ``ProviderAdapter.validate`` is shared by every host, so the
first violated rule always decides the error regardless of provider.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar
from urllib.parse import quote, urlsplit

import structlog

from deployer.errors import UnknownProviderError, ValidationError
from deployer.schemas.options import Credentials
from deployer.schemas.payload import Commit, Payload, Repository

logger = structlog.get_logger()


class ProviderAdapter(ABC):
    """Abstract base class for Git host adapters."""

    name: ClassVar[str]
    canon_url: ClassVar[str]
    host: ClassVar[str]
    ip_allow_list: ClassVar[tuple[str, ...]] = ()

    @property
    def default_ip_allow_list(self) -> list[str]:
        """Known webhook source addresses (single IPs or CIDR networks)."""
        return list(self.ip_allow_list)

    @abstractmethod
    def _origin(self, data: Mapping[str, Any]) -> str | None:
        """Extract the origin marker compared against ``canon_url``."""

    @abstractmethod
    def _repository(self, data: Mapping[str, Any]) -> Repository | None:
        """Extract repository identity, or None if any part is missing."""

    @abstractmethod
    def _commit(self, entry: Mapping[str, Any]) -> Commit | None:
        """Convert one raw commit entry, or None if it has no id."""

    def validate(self, data: Any) -> Payload:
        """Validate raw webhook data and return the normalized payload.

        Raises:
            ValidationError: With reason ``no data``, ``wrong origin``,
                ``no commits``, ``missing repository info`` or
                ``malformed commit``, checked in that order.
        """
        logger.info("validation_started", provider=self.name)
        if not data or not isinstance(data, Mapping):
            raise ValidationError("no data")
        if self._origin(data) != self.canon_url:
            raise ValidationError("wrong origin")
        raw_commits = data.get("commits")
        if not raw_commits or not isinstance(raw_commits, list):
            raise ValidationError("no commits")
        repository = self._repository(data)
        if repository is None:
            raise ValidationError("missing repository info")

        commits = []
        for entry in raw_commits:
            commit = self._commit(entry) if isinstance(entry, Mapping) else None
            if commit is None:
                raise ValidationError("malformed commit")
            commits.append(commit)

        logger.info("validation_successful", provider=self.name, commits=len(commits))
        return Payload(canon_url=self.canon_url, commits=tuple(commits), repository=repository)

    def build_url(
        self,
        payload: Payload,
        use_https: bool,
        credentials: Credentials | None = None,
    ) -> str:
        """Build the clone URL, embedding credentials when using HTTPS."""
        if use_https:
            url = "https://"
            if credentials and credentials.username:
                url += quote(credentials.username, safe="")
                if credentials.password:
                    url += ":" + quote(credentials.password, safe="")
                url += "@"
        else:
            url = "http://"
        repo = payload.repository
        return f"{url}{self.host}/{quote(repo.owner, safe='')}/{quote(repo.slug, safe='')}.git"


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class BitBucketProvider(ProviderAdapter):
    """Adapter for Bitbucket POST hook payloads."""

    name = "bitbucket"
    canon_url = "https://bitbucket.org"
    host = "bitbucket.org"
    ip_allow_list = ("63.246.22.222",)

    def _origin(self, data: Mapping[str, Any]) -> str | None:
        return data.get("canon_url")

    def _repository(self, data: Mapping[str, Any]) -> Repository | None:
        repo = data.get("repository")
        if not isinstance(repo, Mapping) or not _text(repo.get("absolute_url")):
            return None
        owner, name, slug = (_text(repo.get(key)) for key in ("owner", "name", "slug"))
        if not (owner and name and slug):
            return None
        return Repository(owner=owner, name=name, slug=slug, absolute_url=repo["absolute_url"])

    def _commit(self, entry: Mapping[str, Any]) -> Commit | None:
        node = _text(entry.get("raw_node"))
        if node is None:
            return None
        return Commit(id=node, message=_text(entry.get("message")) or "")


class GitHubProvider(ProviderAdapter):
    """Adapter for GitHub push event payloads.

    GitHub sends no origin field, so the origin is the scheme and host of
    ``repository.html_url``.

    Reference: https://docs.github.com/en/webhooks/webhook-events-and-payloads#push
    """

    name = "github"
    canon_url = "https://github.com"
    host = "github.com"
    # "hooks" ranges from https://api.github.com/meta
    ip_allow_list = (
        "192.30.252.0/22",
        "185.199.108.0/22",
        "140.82.112.0/20",
        "143.55.64.0/20",
        "2a0a:a440::/29",
        "2606:50c0::/32",
    )

    def _origin(self, data: Mapping[str, Any]) -> str | None:
        repo = data.get("repository")
        html_url = _text(repo.get("html_url")) if isinstance(repo, Mapping) else None
        if html_url is None:
            return None
        parts = urlsplit(html_url)
        return f"{parts.scheme}://{parts.netloc}"

    def _repository(self, data: Mapping[str, Any]) -> Repository | None:
        repo = data["repository"]
        owner_info = repo.get("owner")
        owner = None
        if isinstance(owner_info, Mapping):
            owner = _text(owner_info.get("login")) or _text(owner_info.get("name"))
        name = _text(repo.get("name"))
        if not (owner and name):
            return None
        return Repository(
            owner=owner,
            name=name,
            slug=name,
            absolute_url=urlsplit(repo["html_url"]).path,
        )

    def _commit(self, entry: Mapping[str, Any]) -> Commit | None:
        commit_id = _text(entry.get("id"))
        if commit_id is None:
            return None
        return Commit(id=commit_id, message=_text(entry.get("message")) or "")


PROVIDERS: dict[str, type[ProviderAdapter]] = {
    BitBucketProvider.name: BitBucketProvider,
    GitHubProvider.name: GitHubProvider,
}


def get_provider(name: str) -> ProviderAdapter:
    """Create the adapter registered under ``name`` (case-insensitive)."""
    adapter_class = PROVIDERS.get(name.lower())
    if adapter_class is None:
        raise UnknownProviderError(name)
    return adapter_class()
