"""Provider-independent webhook payload models.

Provider adapters in ``deployer.services.providers`` build these from the
raw JSON of each Git host. A ``Payload`` only exists once validation has
passed, so the rest of the system never sees partial data.
"""

from pydantic import BaseModel, ConfigDict


class Commit(BaseModel):
    """A single commit delivered in a push notification."""

    model_config = ConfigDict(frozen=True)

    id: str
    message: str = ""


class Repository(BaseModel):
    """Identity of the repository that was pushed to."""

    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    slug: str
    absolute_url: str


class Payload(BaseModel):
    """Normalized push notification.

    ``commits`` keeps the provider's delivery order, oldest first.
    """

    model_config = ConfigDict(frozen=True)

    canon_url: str
    commits: tuple[Commit, ...]
    repository: Repository
