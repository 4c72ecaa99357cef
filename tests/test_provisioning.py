from __future__ import annotations
import json
import pytest
import httpx
from assistant_bridge.config import AssistantProfile
from assistant_bridge.errors import ProvisioningError
from assistant_bridge.services.assistant_client import create_openai_http_client
from assistant_bridge.services.provisioning import AssistantProvisioner, resolve_identifiers

class FakeAssistantsAPI:
    """Records calls and answers like the Assistants API."""

    def __init__(self, failing_uploads=()):
        self.calls = []
        self.failing_uploads = set(failing_uploads)
        self.uploaded = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1/")
        self.calls.append((request.method, path))

        if path == "assistants":
            return httpx.Response(200, json={"id": "asst_new", "object": "assistant"})
        if path == "vector_stores":
            return httpx.Response(200, json={"id": "vs_new", "object": "vector_store"})
        if path == "files":
            body = request.content.decode("utf-8", errors="replace")
            assert 'name="purpose"' in body and "assistants" in body
            for name in self.failing_uploads:
                if f'filename="{name}"' in body:
                    return httpx.Response(500, json={"error": {"message": "upload failed"}})
            self.uploaded += 1
            return httpx.Response(200, json={"id": f"file_{self.uploaded}", "object": "file"})
        if path == "vector_stores/vs_new/files":
            return httpx.Response(200, json={"id": json.loads(request.content)["file_id"]})
        if path == "assistants/asst_new":
            self.attach_body = json.loads(request.content)
            return httpx.Response(200, json={"id": "asst_new"})
        return httpx.Response(404, json={"error": {"message": f"unknown path {path}"}})

def make_provisioner(api) -> AssistantProvisioner:
    return AssistantProvisioner(create_openai_http_client(
        api_url="https://api.test/v1/",
        api_key="sk-test",
        transport=httpx.MockTransport(api)
    ))

@pytest.fixture
def profile(tmp_path):
    files = tmp_path / "files"
    files.mkdir()
    (files / "a_guide.txt").write_text("guide")
    (files / "b_faq.md").write_text("faq")
    (files / "nested").mkdir()
    return AssistantProfile(
        name="Reference Desk",
        instructions="Answer from the files.",
        model="gpt-4o-mini",
        tools=["file_search"],
        files_path=str(files)
    )

@pytest.mark.asyncio
async def test_provision_full_flow(profile):
    api = FakeAssistantsAPI()
    provisioner = make_provisioner(api)

    identifiers = await provisioner.provision(profile)
    await provisioner.http_client.aclose()

    assert identifiers.assistant_id == "asst_new"
    assert identifiers.vector_store_id == "vs_new"
    assert api.calls == [
        ("POST", "assistants"),
        ("POST", "vector_stores"),
        ("POST", "files"),
        ("POST", "vector_stores/vs_new/files"),
        ("POST", "files"),
        ("POST", "vector_stores/vs_new/files"),
        ("POST", "assistants/asst_new"),
    ]
    assert api.attach_body == {"tool_resources": {"file_search": {"vector_store_ids": ["vs_new"]}}}

@pytest.mark.asyncio
async def test_failed_upload_is_skipped(profile):
    api = FakeAssistantsAPI(failing_uploads=["a_guide.txt"])
    provisioner = make_provisioner(api)

    registered = await provisioner.upload_directory("vs_new", profile.files_path)
    await provisioner.http_client.aclose()

    assert registered == ["file_1"]
    assert api.calls.count(("POST", "vector_stores/vs_new/files")) == 1

@pytest.mark.asyncio
async def test_create_assistant_payload(profile):
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(json.loads(request.content))
        return httpx.Response(200, json={"id": "asst_1"})

    provisioner = make_provisioner(handler)
    assistant_id = await provisioner.create_assistant(profile)
    await provisioner.http_client.aclose()

    assert assistant_id == "asst_1"
    assert captured == {
        "name": "Reference Desk",
        "instructions": "Answer from the files.",
        "model": "gpt-4o-mini",
        "tools": [{"type": "file_search"}],
    }

@pytest.mark.asyncio
async def test_rejected_assistant_is_fatal(profile):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"message": "Incorrect API key"}})

    provisioner = make_provisioner(handler)
    with pytest.raises(ProvisioningError):
        await provisioner.provision(profile)
    await provisioner.http_client.aclose()

@pytest.mark.asyncio
async def test_missing_id_is_fatal():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"object": "vector_store"})

    provisioner = make_provisioner(handler)
    with pytest.raises(ProvisioningError, match="no id"):
        await provisioner.create_vector_store()
    await provisioner.http_client.aclose()

@pytest.mark.asyncio
async def test_missing_files_directory_is_fatal(tmp_path):
    provisioner = make_provisioner(FakeAssistantsAPI())
    with pytest.raises(ProvisioningError, match="not found"):
        await provisioner.upload_directory("vs_new", tmp_path / "absent")
    await provisioner.http_client.aclose()

@pytest.mark.asyncio
async def test_configured_identifiers_skip_provisioning():
    api = FakeAssistantsAPI()
    provisioner = make_provisioner(api)

    def loader():
        raise AssertionError("profile should not be loaded")

    identifiers = await resolve_identifiers(provisioner, loader, assistant_id="asst_cfg", vector_store_id="vs_cfg")
    await provisioner.http_client.aclose()

    assert identifiers.assistant_id == "asst_cfg"
    assert identifiers.vector_store_id == "vs_cfg"
    assert api.calls == []

@pytest.mark.asyncio
async def test_partial_identifiers_still_provision(profile):
    api = FakeAssistantsAPI()
    provisioner = make_provisioner(api)

    identifiers = await resolve_identifiers(provisioner, lambda: profile, assistant_id="asst_cfg")
    await provisioner.http_client.aclose()

    assert identifiers.assistant_id == "asst_new"
    assert ("POST", "assistants") in api.calls
