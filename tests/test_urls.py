"""Tests for Azure DevOps URL parsing."""

from __future__ import annotations

import pytest

from defenders_cli.azure_devops.urls import (
    build_results_url,
    parse_pipeline_url,
    parse_pull_request_url,
    pull_request_web_url,
    token_settings_url,
    work_item_web_url,
)
from defenders_cli.core.exceptions import ValidationError


class TestParsePipelineUrl:
    @pytest.mark.parametrize(
        ("org", "project", "definition_id"),
        [
            ("contoso", "Web", "1"),
            ("fabrikam", "Platform-Services", "4567"),
            ("msazure", "One", "98765"),
        ],
    )
    def test_dev_azure_definition_url(self, org, project, definition_id):
        parsed = parse_pipeline_url(
            f"https://dev.azure.com/{org}/{project}/_build?definitionId={definition_id}"
        )
        assert parsed.org_url == f"https://dev.azure.com/{org}"
        assert parsed.project == project
        assert parsed.definition_id == definition_id

    def test_dev_azure_build_results_url(self):
        parsed = parse_pipeline_url(
            "https://dev.azure.com/contoso/Web/_build/results?buildId=123&view=results"
        )
        assert parsed.org_url == "https://dev.azure.com/contoso"
        assert parsed.project == "Web"
        assert parsed.build_id == "123"
        assert parsed.query["view"] == "results"

    def test_visualstudio_url_takes_org_from_host(self):
        parsed = parse_pipeline_url("https://contoso.visualstudio.com/Web/_build?definitionId=42")
        assert parsed.org_url == "https://contoso.visualstudio.com"
        assert parsed.project == "Web"
        assert parsed.definition_id == "42"

    def test_project_is_percent_decoded(self):
        parsed = parse_pipeline_url("https://dev.azure.com/contoso/My%20Project/_build?definitionId=7")
        assert parsed.project == "My Project"

    def test_missing_project_segment(self):
        with pytest.raises(ValidationError, match="expected org and project"):
            parse_pipeline_url("https://dev.azure.com/contoso?definitionId=1")

    def test_visualstudio_missing_project(self):
        with pytest.raises(ValidationError, match="expected project"):
            parse_pipeline_url("https://contoso.visualstudio.com/?definitionId=1")

    @pytest.mark.parametrize(
        "url",
        [
            "https://dev.azure.com/contoso/_build?definitionId=1",
            "https://contoso.visualstudio.com/_build/results?buildId=5",
        ],
    )
    def test_route_segment_is_not_a_project(self, url):
        with pytest.raises(ValidationError, match="expected project in path"):
            parse_pipeline_url(url)

    def test_wrong_host(self):
        with pytest.raises(ValidationError, match="unrecognized ADO URL format"):
            parse_pipeline_url("https://github.com/contoso/web/actions?definitionId=1")

    def test_missing_definition_id(self):
        parsed = parse_pipeline_url("https://dev.azure.com/contoso/Web/_build")
        with pytest.raises(ValidationError, match="definitionId"):
            parsed.definition_id

    def test_missing_build_id(self):
        parsed = parse_pipeline_url("https://dev.azure.com/contoso/Web/_build?definitionId=3")
        with pytest.raises(ValidationError, match="buildId"):
            parsed.build_id


class TestParsePullRequestUrl:
    def test_visualstudio_url(self):
        parsed = parse_pull_request_url(
            "https://contoso.visualstudio.com/Web/_git/frontend/pullrequest/321"
        )
        assert parsed.org_url == "https://contoso.visualstudio.com"
        assert parsed.project == "Web"
        assert parsed.repository == "frontend"
        assert parsed.pull_request_id == "321"

    def test_dev_azure_url_keeps_organization(self):
        parsed = parse_pull_request_url(
            "https://dev.azure.com/contoso/Web/_git/frontend/pullrequest/321"
        )
        assert parsed.org_url == "https://dev.azure.com/contoso"
        assert parsed.project == "Web"
        assert parsed.repository == "frontend"

    @pytest.mark.parametrize("suffix", ["/overview", "/files?_a=files", "/", "/commits/abc"])
    def test_trailing_segments_are_ignored(self, suffix):
        parsed = parse_pull_request_url(
            f"https://contoso.visualstudio.com/Web/_git/frontend/pullrequest/321{suffix}"
        )
        assert (parsed.project, parsed.repository, parsed.pull_request_id) == (
            "Web",
            "frontend",
            "321",
        )

    def test_repository_is_percent_decoded(self):
        parsed = parse_pull_request_url(
            "https://server.local/Collection/Proj/_git/survey%20repo/pullrequest/9"
        )
        assert parsed.org_url == "https://server.local"
        assert parsed.project == "Proj"
        assert parsed.repository == "survey repo"

    @pytest.mark.parametrize(
        "url",
        [
            "https://contoso.visualstudio.com/Web/frontend/pullrequest/321",
            "https://contoso.visualstudio.com/Web/_git/frontend",
            "https://contoso.visualstudio.com/Web/_git/frontend/pullrequest",
            "https://contoso.visualstudio.com/_git/frontend/pullrequest/1",
            "https://contoso.visualstudio.com/Web/_git/frontend/pullrequest/abc",
        ],
    )
    def test_malformed_urls(self, url):
        with pytest.raises(ValidationError):
            parse_pull_request_url(url)


class TestWebUrls:
    def test_build_results_url(self):
        assert (
            build_results_url("https://dev.azure.com/contoso", "Web", 55)
            == "https://dev.azure.com/contoso/Web/_build/results?buildId=55&view=results"
        )

    def test_trailing_slash_is_trimmed(self):
        assert (
            work_item_web_url("https://dev.azure.com/contoso/", "Web", "17")
            == "https://dev.azure.com/contoso/Web/_workitems/edit/17"
        )

    def test_pull_request_web_url(self):
        assert (
            pull_request_web_url("https://dev.azure.com/contoso", "Web", "frontend", 8)
            == "https://dev.azure.com/contoso/Web/_git/frontend/pullrequest/8"
        )

    def test_token_settings_url(self):
        assert (
            token_settings_url("https://dev.azure.com/msazure")
            == "https://dev.azure.com/msazure/_usersSettings/tokens"
        )
