import json

import pytest
import responses
from responses import matchers

from sentryapi.client import Client
from sentryapi.code_mappings import (
    CodeMappingParams,
    CodeMappingProvider,
    OrganizationCodeMapping,
    OrganizationCodeMappingsService,
)
from sentryapi.errors import APIError

BASE = "https://sentry.example.com/api/"
URL = BASE + "0/organizations/the-interstellar-jurisdiction/code-mappings/"


def _payload(mapping_id="54321"):
    return {
        "id": mapping_id,
        "projectId": "7654321",
        "projectSlug": "spoon-knife",
        "repoId": "456123",
        "repoName": "octocat/Spoon-Knife",
        "integrationId": "123456",
        "provider": {
            "key": "github",
            "slug": "github",
            "name": "GitHub",
            "canAdd": True,
            "canDisable": False,
            "features": ["codeowners", "commits", "issue-basic", "stacktrace-link"],
            "aspects": {},
        },
        "stackRoot": "/",
        "sourceRoot": "src/",
        "defaultBranch": "main",
    }


def _expected(mapping_id="54321"):
    return OrganizationCodeMapping(
        id=mapping_id,
        project_id="7654321",
        project_slug="spoon-knife",
        repo_id="456123",
        repo_name="octocat/Spoon-Knife",
        integration_id="123456",
        provider=CodeMappingProvider(
            key="github",
            slug="github",
            name="GitHub",
            can_add=True,
            can_disable=False,
            features=["codeowners", "commits", "issue-basic", "stacktrace-link"],
        ),
        stack_root="/",
        source_root="src/",
        default_branch="main",
    )


def _params():
    return CodeMappingParams(
        default_branch="main",
        stack_root="/",
        source_root="src/",
        repository_id="456123",
        integration_id="123456",
        project_id="7654321",
    )


@pytest.fixture
def mock():
    with responses.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def service():
    with Client("token", base_url=BASE, sleep=lambda _: None) as client:
        yield OrganizationCodeMappingsService(client)


def test_list(mock, service):
    mock.add(
        responses.GET,
        URL,
        json=[_payload()],
        match=[matchers.query_param_matcher({"cursor": "100:-1:1", "integrationId": "123456"})],
    )
    mappings, cursor = service.list("the-interstellar-jurisdiction", cursor="100:-1:1", integration_id="123456")
    assert mappings == [_expected()]
    assert cursor == ""


def test_create(mock, service):
    mock.add(responses.POST, URL, status=201, json=_payload())
    mapping = service.create("the-interstellar-jurisdiction", _params())
    assert mapping == _expected()
    assert json.loads(mock.calls[0].request.body) == {
        "defaultBranch": "main",
        "stackRoot": "/",
        "sourceRoot": "src/",
        "repositoryId": "456123",
        "integrationId": "123456",
        "projectId": "7654321",
    }


def test_update(mock, service):
    mock.add(responses.PUT, URL + "54321/", json=_payload("54321"))
    mapping = service.update("the-interstellar-jurisdiction", "54321", _params())
    assert mapping == _expected("54321")
    assert mock.calls[0].request.method == "PUT"


def test_delete(mock, service):
    mock.add(responses.DELETE, URL + "54321/", status=204)
    assert service.delete("the-interstellar-jurisdiction", "54321") is None
    assert mock.calls[0].request.method == "DELETE"


def test_create_error(mock, service):
    mock.add(responses.POST, URL, status=400, json={"detail": "bad stack root"})
    with pytest.raises(APIError) as info:
        service.create("the-interstellar-jurisdiction", _params())
    assert info.value.status_code == 400
    assert info.value.detail() == "bad stack root"


def test_from_dict_defaults_missing_fields():
    mapping = OrganizationCodeMapping.from_dict({"id": "1"})
    assert mapping == OrganizationCodeMapping(id="1")
    assert mapping.provider is None