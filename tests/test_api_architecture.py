"""Tests for the architecture service HTTP endpoints: components, links and architectures."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest

from core.exceptions import AIEvaluationError

if TYPE_CHECKING:
    from fastapi.testclient import TestClient

    from api.config import Settings

AI_REPLY = {"heuristic_scores": {"LATENCY": 8, "SCALABILITY": 6}, "suggestion": "Shard the database."}


def _component(client: TestClient, component_type: str, name: str, subtype: str | None = None) -> dict:
    body: dict = {"type": component_type, "name": name}
    if subtype:
        body["properties"] = {"subtype": subtype}
    response = client.post("/api/components", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def _link(client: TestClient, source: dict, target: dict, link_type: str) -> dict:
    response = client.post(
        "/api/links", json={"sourceId": source["id"], "targetId": target["id"], "linkType": link_type}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def shop(client: TestClient) -> dict:
    """Create a client -> API -> database architecture through the API."""
    web = _component(client, "CLIENT", "Web")
    api = _component(client, "API_SERVICE", "Orders API", "rest")
    db = _component(client, "DATABASE", "Orders DB", "POSTGRESQL")
    links = [_link(client, web, api, "HTTP_REQUEST"), _link(client, api, db, "DATABASE_QUERY")]

    architecture = client.post("/api/architecture", json={"name": "Shop"}).json()
    for component in (web, api, db):
        client.post(f"/api/architecture/{architecture['id']}/components", json={"componentId": component["id"]})
    for link in links:
        client.post(f"/api/architecture/{architecture['id']}/links", json={"linkId": link["id"]})
    return {"architecture": architecture, "web": web, "api": api, "db": db, "links": links}


class TestComponentEndpoints:
    """Tests for /api/components."""

    def test_catalog(self, client: TestClient) -> None:
        """Types, subtypes and heuristic previews are exposed."""
        types = client.get("/api/components/types").json()
        assert len(types) == 10
        assert "STREAM_PROCESSOR" in types

        assert client.get("/api/components/subtypes/CACHE").json() == {
            "type": "CACHE",
            "subtypes": ["REDIS", "MEMCACHED", "CDN"],
        }
        assert client.get("/api/components/subtypes/CLIENT").json()["subtypes"] == ["default"]

        preview = client.get("/api/components/heuristics/CACHE/redis").json()
        assert preview["scores"]["DURABILITY"] == 5.0

    def test_unknown_subtype_preview(self, client: TestClient) -> None:
        """Previewing an unknown subtype is a 400."""
        response = client.get("/api/components/heuristics/CACHE/ORACLE")
        assert response.status_code == 400
        assert "Unknown subtype" in response.json()["error"]

    def test_create_component(self, client: TestClient) -> None:
        """Components are created with camelCase JSON and normalised subtypes."""
        component = _component(client, "DATABASE", "Orders DB", "mongodb")

        assert component["type"] == "DATABASE"
        assert component["properties"] == {"subtype": "MONGODB"}
        assert set(component["heuristics"]["scores"]) >= {"LATENCY", "SCALABILITY"}
        assert client.get(f"/api/components/{component['id']}").json() == component

    def test_create_component_invalid_type(self, client: TestClient) -> None:
        """Unknown component types fail request validation with a 400."""
        response = client.post("/api/components", json={"type": "MAINFRAME", "name": "Big iron"})
        assert response.status_code == 400
        assert response.json()["error"].startswith("type:")

    def test_query_endpoints(self, client: TestClient) -> None:
        """Count, filter by type and existence checks."""
        db = _component(client, "DATABASE", "DB")
        _component(client, "CLIENT", "Web")

        assert client.get("/api/components").status_code == 200
        assert client.get("/api/components/count").json() == {"count": 2}
        assert [c["id"] for c in client.get("/api/components/type/DATABASE").json()] == [db["id"]]
        assert client.get(f"/api/components/{db['id']}/exists").json() == {"exists": True}
        assert client.get("/api/components/nope/exists").json() == {"exists": False}

    def test_missing_component(self, client: TestClient) -> None:
        """Unknown components are a 404 with an error body."""
        response = client.get("/api/components/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Component not found: nope"}

    def test_update_component(self, client: TestClient) -> None:
        """PUT replaces a component but keeps its ID."""
        component = _component(client, "QUEUE", "Jobs")
        component["name"] = "Background jobs"

        response = client.put(f"/api/components/{component['id']}", json={**component, "id": "ignored"})

        assert response.status_code == 200
        assert response.json()["id"] == component["id"]
        assert response.json()["name"] == "Background jobs"

    def test_update_component_without_id(self, client: TestClient) -> None:
        """The ID comes from the path; the body may omit it and the subtype is normalised."""
        component = _component(client, "QUEUE", "Jobs")
        body = {key: value for key, value in component.items() if key not in ("id", "heuristics")}
        body["properties"] = {"subtype": "kafka"}

        response = client.put(f"/api/components/{component['id']}", json=body)

        assert response.status_code == 200, response.text
        updated = response.json()
        assert updated["id"] == component["id"]
        assert updated["properties"] == {"subtype": "KAFKA"}
        assert updated["heuristics"]["scores"]
        assert client.get(f"/api/components/{component['id']}").json()["properties"] == {"subtype": "KAFKA"}

    def test_update_component_unknown_subtype(self, client: TestClient) -> None:
        """Updates are checked against the subtype catalog."""
        component = _component(client, "QUEUE", "Jobs")

        response = client.put(
            f"/api/components/{component['id']}",
            json={"type": "QUEUE", "name": "Jobs", "properties": {"subtype": "NOPE"}},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Unknown subtype 'NOPE' for component type QUEUE"}

    def test_delete_component_cascades(self, client: TestClient, shop: dict) -> None:
        """Deleting a component deletes its links."""
        response = client.delete(f"/api/components/{shop['api']['id']}")

        assert response.status_code == 204
        assert client.get("/api/links").json() == []
        assert client.delete(f"/api/components/{shop['api']['id']}").status_code == 404


class TestLinkEndpoints:
    """Tests for /api/links."""

    def test_create_and_fetch(self, client: TestClient, shop: dict) -> None:
        """Created links can be fetched and listed per component."""
        first, second = shop["links"]

        assert first["sourceId"] == shop["web"]["id"]
        assert first["type"] == "HTTP_REQUEST"
        assert client.get(f"/api/links/{first['id']}").json() == first

        around_api = client.get(f"/api/links/component/{shop['api']['id']}").json()
        assert [link["id"] for link in around_api] == [second["id"], first["id"]]
        assert client.get(f"/api/links/component/{shop['api']['id']}/stats").json() == {
            "incomingLinks": 1,
            "outgoingLinks": 1,
            "totalConnections": 2,
        }

    def test_invalid_connection(self, client: TestClient, shop: dict) -> None:
        """Rule-breaking links are a 400 naming the components."""
        response = client.post(
            "/api/links",
            json={"sourceId": shop["db"]["id"], "targetId": shop["web"]["id"], "linkType": "HTTP_REQUEST"},
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid connection: Orders DB (DATABASE) -> Web (CLIENT)")

    def test_link_type_required(self, client: TestClient, shop: dict) -> None:
        """Creating a link without a type is a 400."""
        response = client.post("/api/links", json={"sourceId": shop["web"]["id"], "targetId": shop["api"]["id"]})
        assert response.status_code == 400
        assert response.json() == {"error": "linkType is required"}

    def test_missing_endpoint(self, client: TestClient, shop: dict) -> None:
        """Links to unknown components are a 404."""
        response = client.post(
            "/api/links", json={"sourceId": shop["web"]["id"], "targetId": "ghost", "linkType": "HTTP_REQUEST"}
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Target component not found: ghost"}

    def test_validate_and_suggest(self, client: TestClient, shop: dict) -> None:
        """Validation explains itself and suggestions follow the rules."""
        pair = {"sourceId": shop["web"]["id"], "targetId": shop["api"]["id"]}

        ok = client.post("/api/links/validate", json={**pair, "linkType": "WEBSOCKET"}).json()
        assert ok == {"valid": True, "message": "Connection is valid"}

        rejected = client.post("/api/links/validate", json={**pair, "linkType": "REPLICATION"}).json()
        assert rejected["valid"] is False
        assert "Allowed link types: HTTP_REQUEST, GRPC_CALL, WEBSOCKET." in rejected["message"]

        suggested = client.post("/api/links/suggest", json=pair).json()
        assert suggested == {"validLinkTypes": ["HTTP_REQUEST", "GRPC_CALL", "WEBSOCKET"]}

    def test_heuristics(self, client: TestClient, shop: dict) -> None:
        """Default and per-link heuristics can be read, and per-link ones replaced."""
        assert client.get("/api/links/types").json()[0] == "HTTP_REQUEST"
        assert client.get("/api/links/heuristics/default/GRPC_CALL").json()["scores"]["LATENCY"] == 8.5

        link_id = shop["links"][0]["id"]
        updated = client.put(f"/api/links/{link_id}/heuristics", json={"scores": {"LATENCY": 2.0}})
        assert updated.status_code == 200
        assert client.get(f"/api/links/{link_id}/heuristics").json() == {"scores": {"LATENCY": 2.0}}

    def test_delete_link(self, client: TestClient, shop: dict) -> None:
        """Deleted links are gone."""
        link_id = shop["links"][0]["id"]
        assert client.delete(f"/api/links/{link_id}").status_code == 204
        assert client.get(f"/api/links/{link_id}").status_code == 404


class TestArchitectureEndpoints:
    """Tests for /api/architecture."""

    def test_create_defaults(self, client: TestClient) -> None:
        """Architectures without a name get the default one."""
        response = client.post("/api/architecture")
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "My Architecture"
        assert body["submitted"] is False
        assert {"createdAt", "updatedAt", "components", "links"} <= set(body)

    def test_read_back(self, client: TestClient, shop: dict) -> None:
        """Components and links attached to an architecture are embedded in it."""
        architecture_id = shop["architecture"]["id"]
        body = client.get(f"/api/architecture/{architecture_id}").json()

        assert [c["name"] for c in body["components"]] == ["Web", "Orders API", "Orders DB"]
        assert len(body["links"]) == 2
        assert [a["id"] for a in client.get("/api/architecture").json()] == [architecture_id]

        graph = client.get(f"/api/architecture/visualize/{architecture_id}").json()
        assert graph["architectureId"] == architecture_id
        assert graph["architectureName"] == "Shop"
        assert len(graph["components"]) == 3

    def test_missing_architecture(self, client: TestClient) -> None:
        """Unknown architectures are a 404."""
        response = client.get("/api/architecture/nope")
        assert response.status_code == 404
        assert response.json() == {"error": "Architecture not found: nope"}

    def test_rename(self, client: TestClient, shop: dict) -> None:
        """PUT renames; a blank name keeps the current one."""
        architecture_id = shop["architecture"]["id"]

        assert client.put(f"/api/architecture/{architecture_id}", json={"name": "Shop v2"}).json()["name"] == "Shop v2"
        assert client.put(f"/api/architecture/{architecture_id}", json={"name": " "}).json()["name"] == "Shop v2"

    def test_score_evaluate_validate(self, client: TestClient, shop: dict) -> None:
        """Scoring endpoints return camelCase results."""
        architecture_id = shop["architecture"]["id"]

        score = client.get(f"/api/architecture/{architecture_id}/score").json()
        assert score["architectureId"] == architecture_id
        assert 0 < score["score"] <= 10

        evaluation = client.post("/api/architecture/evaluate", json={"architectureId": architecture_id}).json()
        assert evaluation["overallScore"] == score["score"]
        assert evaluation["componentCount"] == 3
        assert evaluation["linkCount"] == 2
        assert evaluation["valid"] is True
        assert "LATENCY" in evaluation["parameterScores"]
        assert evaluation["bottlenecks"] == []
        assert evaluation["insights"]

        validation = client.post(f"/api/architecture/{architecture_id}/validate").json()
        assert validation["valid"] is True
        assert validation["violations"] == []

    def test_compare(self, client: TestClient, shop: dict) -> None:
        """Comparing with an empty architecture names the populated one."""
        empty = client.post("/api/architecture", json={"name": "Empty"}).json()

        response = client.post(
            "/api/architecture/compare",
            json={"architecture1Id": shop["architecture"]["id"], "architecture2Id": empty["id"]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["winner"] == "Shop"
        assert body["arch2Score"] == 0.0

    def test_copy(self, client: TestClient, shop: dict) -> None:
        """Copies are new drafts with new IDs."""
        response = client.post(f"/api/architecture/{shop['architecture']['id']}/copy")

        assert response.status_code == 201
        copy = response.json()
        assert copy["name"] == "Shop (Copy)"
        assert copy["id"] != shop["architecture"]["id"]
        assert {c["id"] for c in copy["components"]}.isdisjoint({shop["web"]["id"], shop["api"]["id"]})
        assert len(copy["links"]) == 2

        named = client.post(f"/api/architecture/{shop['architecture']['id']}/copy", json={"name": "Fork"})
        assert named.json()["name"] == "Fork"

    def test_submit_and_query(self, client: TestClient, shop: dict) -> None:
        """Submitted architectures are listed by user, question and status."""
        architecture_id = shop["architecture"]["id"]

        response = client.post(
            f"/api/architecture/{architecture_id}/submit", json={"userId": "u1", "questionId": "q1"}
        )

        assert response.status_code == 200
        assert response.json()["submitted"] is True
        assert response.json()["userId"] == "u1"
        assert [a["id"] for a in client.get("/api/architecture/submitted").json()] == [architecture_id]
        assert [a["id"] for a in client.get("/api/architecture/user/u1").json()] == [architecture_id]
        assert [a["id"] for a in client.get("/api/architecture/question/q1").json()] == [architecture_id]
        assert client.get("/api/architecture/user/u2").json() == []

    def test_submit_requires_ids(self, client: TestClient, shop: dict) -> None:
        """Submission without a user or question is a 400."""
        response = client.post(f"/api/architecture/{shop['architecture']['id']}/submit", json={"userId": "u1"})
        assert response.status_code == 400
        assert response.json() == {"error": "userId and questionId are required"}

    def test_rules(self, client: TestClient) -> None:
        """The connection rule table is published."""
        all_rules = client.get("/api/architecture/rules").json()
        assert len(all_rules) == 37
        assert set(all_rules[0]) == {"sourceType", "targetType", "linkType", "description"}

        replication = client.get("/api/architecture/rules/REPLICATION").json()
        assert len(replication) == 3
        assert client.get("/api/architecture/rules/TELEPORT").status_code == 400

    def test_health(self, client: TestClient, shop: dict) -> None:
        """The architecture health endpoint reports storage counts."""
        body = client.get("/api/architecture/health").json()
        assert body == {
            "healthy": True,
            "message": "Storage is healthy",
            "architectureCount": 1,
            "submittedCount": 0,
        }

    def test_delete(self, client: TestClient, shop: dict) -> None:
        """Deleted architectures are gone."""
        architecture_id = shop["architecture"]["id"]
        assert client.delete(f"/api/architecture/{architecture_id}").status_code == 204
        assert client.get(f"/api/architecture/{architecture_id}").status_code == 404


class TestAIEvaluateEndpoint:
    """Tests for /api/architecture/{id}/ai-evaluate."""

    def test_not_configured(self, client: TestClient, shop: dict) -> None:
        """Without an AI backend the endpoint is unavailable."""
        response = client.post(
            f"/api/architecture/{shop['architecture']['id']}/ai-evaluate", json={"question": "Design a shop"}
        )
        assert response.status_code == 503
        assert response.json() == {"error": "AI evaluation is not configured"}

    def test_question_required(self, client: TestClient, shop: dict) -> None:
        """Either a question or a question ID must be given."""
        response = client.post(f"/api/architecture/{shop['architecture']['id']}/ai-evaluate", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "question or questionId is required"}

    def test_remote_evaluator(self, client: TestClient, shop: dict, settings: Settings) -> None:
        """The remote evaluator's scores are returned in the evaluation panel shape."""
        settings.ai_evaluator_url = "http://evaluator.test/evaluate"

        with patch("core.ai_evaluation.evaluate_remote", new_callable=AsyncMock, return_value=AI_REPLY) as remote:
            response = client.post(
                f"/api/architecture/{shop['architecture']['id']}/ai-evaluate", json={"question": "Design a shop"}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["overallScore"] == 7.0
        assert body["parameterScores"] == {"LATENCY": 8.0, "SCALABILITY": 6.0}
        assert body["insights"] == ["Shard the database."]
        assert body["componentCount"] == 3
        assert body["isAiMode"] is True
        assert remote.await_args.args[0] == "http://evaluator.test/evaluate"
        assert remote.await_args.args[1] == "Design a shop"

    def test_question_id_lookup(
        self, client: TestClient, shop: dict, settings: Settings, auth_headers: dict[str, str]
    ) -> None:
        """A forum question ID is expanded into its title and description."""
        settings.ai_evaluator_url = "http://evaluator.test/evaluate"
        question = client.post(
            "/questions",
            headers=auth_headers,
            data={"qtitle": "Design a shop", "qdes": "Black Friday traffic"},
            files={"qimg": ("shop.png", b"png", "image/png")},
        ).json()["question"]

        with patch("core.ai_evaluation.evaluate_remote", new_callable=AsyncMock, return_value=AI_REPLY) as remote:
            response = client.post(
                f"/api/architecture/{shop['architecture']['id']}/ai-evaluate", json={"questionId": question["_id"]}
            )

        assert response.status_code == 200
        assert remote.await_args.args[1] == "Design a shop\n\nBlack Friday traffic"

    def test_evaluator_failure(self, client: TestClient, shop: dict, settings: Settings) -> None:
        """Backend failures are reported as a bad gateway."""
        settings.ai_evaluator_url = "http://evaluator.test/evaluate"

        with patch(
            "core.ai_evaluation.evaluate_remote",
            new_callable=AsyncMock,
            side_effect=AIEvaluationError("AI evaluation failed: 500 Internal Server Error"),
        ):
            response = client.post(
                f"/api/architecture/{shop['architecture']['id']}/ai-evaluate", json={"question": "Design a shop"}
            )

        assert response.status_code == 502
        assert response.json() == {"error": "AI evaluation failed: 500 Internal Server Error"}
