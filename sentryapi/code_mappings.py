"""Code mappings that link project stack traces to repository sources."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .client import Client


@dataclass
class CodeMappingProvider:
    """The integration provider behind a code mapping."""

    key: str = ""
    slug: str = ""
    name: str = ""
    can_add: bool = False
    can_disable: bool = False
    features: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CodeMappingProvider":
        features = data.get("features")
        return cls(
            key=data.get("key") or "",
            slug=data.get("slug") or "",
            name=data.get("name") or "",
            can_add=bool(data.get("canAdd", False)),
            can_disable=bool(data.get("canDisable", False)),
            features=None if features is None else list(features),
        )


@dataclass
class OrganizationCodeMapping:
    """A code mapping configured in an organization."""

    id: str = ""
    project_id: str = ""
    project_slug: str = ""
    repo_id: str = ""
    repo_name: str = ""
    integration_id: str = ""
    provider: CodeMappingProvider | None = None
    stack_root: str = ""
    source_root: str = ""
    default_branch: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrganizationCodeMapping":
        provider = data.get("provider")
        return cls(
            id=data.get("id") or "",
            project_id=data.get("projectId") or "",
            project_slug=data.get("projectSlug") or "",
            repo_id=data.get("repoId") or "",
            repo_name=data.get("repoName") or "",
            integration_id=data.get("integrationId") or "",
            provider=None if provider is None else CodeMappingProvider.from_dict(provider),
            stack_root=data.get("stackRoot") or "",
            source_root=data.get("sourceRoot") or "",
            default_branch=data.get("defaultBranch") or "",
        )


@dataclass
class CodeMappingParams:
    """Fields sent to create or update a code mapping."""

    default_branch: str = ""
    stack_root: str = ""
    source_root: str = ""
    repository_id: str = ""
    integration_id: str = ""
    project_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "defaultBranch": self.default_branch,
            "stackRoot": self.stack_root,
            "sourceRoot": self.source_root,
            "repositoryId": self.repository_id,
            "integrationId": self.integration_id,
            "projectId": self.project_id,
        }


class OrganizationCodeMappingsService:
    """Code mapping endpoints of the Sentry API."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def list(
        self,
        organization_slug: str,
        cursor: str | None = None,
        integration_id: str | None = None,
    ) -> tuple[list[OrganizationCodeMapping], str]:
        """Return one page of code mappings and the cursor of the next page ("" if none)."""
        data, response = self.client.request(
            "GET",
            f"0/organizations/{organization_slug}/code-mappings/",
            params={"cursor": cursor, "integrationId": integration_id},
        )
        return [OrganizationCodeMapping.from_dict(item) for item in data or []], response.cursor

    def create(self, organization_slug: str, params: CodeMappingParams) -> OrganizationCodeMapping:
        """Create a code mapping."""
        data, _ = self.client.request(
            "POST", f"0/organizations/{organization_slug}/code-mappings/", body=params.to_dict()
        )
        return OrganizationCodeMapping.from_dict(data or {})

    def update(
        self, organization_slug: str, code_mapping_id: str, params: CodeMappingParams
    ) -> OrganizationCodeMapping:
        """Replace a code mapping."""
        data, _ = self.client.request(
            "PUT",
            f"0/organizations/{organization_slug}/code-mappings/{code_mapping_id}/",
            body=params.to_dict(),
        )
        return OrganizationCodeMapping.from_dict(data or {})

    def delete(self, organization_slug: str, code_mapping_id: str) -> None:
        """Delete a code mapping."""
        self.client.request("DELETE", f"0/organizations/{organization_slug}/code-mappings/{code_mapping_id}/")