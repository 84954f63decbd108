"""Configuration schema for the remote Git repository."""

from typing import Any, Dict
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_PUBLIC_URL_TEMPLATE = "https://cdn.jsdelivr.net/gh/{owner}/{repo}@{branch}/{path}"
GITHUB_HOSTS = {"github.com", "www.github.com"}


class GitConfig(BaseModel):
    """Coordinates and credentials of the repository used as the object store."""

    owner: str = Field(default="", description="Repository owner (user or organization)")
    repo: str = Field(default="", description="Repository name")
    branch: str = Field(default="main", description="Branch that receives commits")
    token: str = Field(default="", description="Personal access token with contents write scope")
    public_url_template: str = Field(
        default=DEFAULT_PUBLIC_URL_TEMPLATE,
        description="Template for public object URLs; supports {owner} {repo} {branch} {path}"
    )

    @field_validator("owner", "branch", "token", mode="before")
    @classmethod
    def strip_value(cls, v):
        return (v or "").strip() if isinstance(v, str) or v is None else v

    @field_validator("branch")
    @classmethod
    def default_branch(cls, v):
        return v or "main"

    @field_validator("public_url_template")
    @classmethod
    def validate_template(cls, v):
        v = (v or "").strip() or DEFAULT_PUBLIC_URL_TEMPLATE
        if "{path}" not in v:
            raise ValueError("public_url_template must contain {path}")
        return v

    @model_validator(mode="before")
    @classmethod
    def split_repository(cls, data: Any) -> Any:
        """Accept ``repo`` as ``owner/name``, a GitHub URL or an SSH remote."""
        if not isinstance(data, dict):
            return data
        repo = (data.get("repo") or "").strip()
        if not repo:
            return data

        data = dict(data)
        path = _repository_path(repo)
        if "/" in path:
            owner, name = path.split("/", 1)
            if not (data.get("owner") or "").strip():
                data["owner"] = owner
            data["repo"] = name
        else:
            data["repo"] = path
        return data

    @property
    def is_complete(self) -> bool:
        """Whether mutations against the remote store may be attempted."""
        return bool(self.owner and self.repo and self.token)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def public_dict(self) -> Dict[str, Any]:
        """Serialize for display, with the token masked."""
        data = self.model_dump()
        data["token"] = mask_token(self.token)
        return data


def mask_token(token: str) -> str:
    if not token:
        return ""
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}{'*' * (len(token) - 8)}{token[-4:]}"


def _repository_path(value: str) -> str:
    if value.startswith("git@"):
        value = value.split(":", 1)[1] if ":" in value else value
    elif "://" in value:
        parsed = urlparse(value)
        if parsed.hostname in GITHUB_HOSTS or parsed.scheme == "ssh":
            value = parsed.path
    value = value.strip("/")
    if value.endswith(".git"):
        value = value[:-4]
    parts = [part for part in value.split("/") if part]
    return "/".join(parts[:2])
