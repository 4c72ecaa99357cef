from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List, Optional
import httpx
from assistant_bridge.config import AssistantProfile
from assistant_bridge.errors import ProvisioningError
from assistant_bridge.models.schemas import SessionIdentifiers
from assistant_bridge.obs.decorators import traced, timed
from assistant_bridge.obs.logging_setup import get_logger

logger = get_logger(__name__)

class AssistantProvisioner:
    """Creates the assistant and its file-search vector store.

    Runs once at startup, strictly in sequence. Any failure other than a
    single file upload is fatal.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self.http_client = http_client

    async def _post(self, path: str, operation: str, **kwargs) -> Dict[str, Any]:
        try:
            response = await self.http_client.post(path, **kwargs)
        except httpx.HTTPError as e:
            raise ProvisioningError(f"{operation} failed: {e}") from e

        if response.status_code != 200:
            logger.error(f"{operation} rejected", status_code=response.status_code, body=response.text[:500])
            raise ProvisioningError(f"{operation} rejected with status {response.status_code}: {response.text[:200]}")

        try:
            return response.json()
        except ValueError as e:
            raise ProvisioningError(f"{operation} returned invalid JSON") from e

    @staticmethod
    def _require_id(body: Dict[str, Any], operation: str) -> str:
        resource_id = body.get("id")
        if not isinstance(resource_id, str) or not resource_id:
            raise ProvisioningError(f"{operation} response has no id")
        return resource_id

    async def create_assistant(self, profile: AssistantProfile) -> str:
        body = await self._post("assistants", "Create assistant", json={
            "name": profile.name,
            "instructions": profile.instructions,
            "model": profile.model,
            "tools": [{"type": tool} for tool in profile.tools],
        })
        assistant_id = self._require_id(body, "Create assistant")
        logger.info("Assistant created", assistant_id=assistant_id)
        return assistant_id

    async def create_vector_store(self) -> str:
        body = await self._post("vector_stores", "Create vector store", json={})
        vector_store_id = self._require_id(body, "Create vector store")
        logger.info("Vector store created", vector_store_id=vector_store_id)
        return vector_store_id

    async def upload_file(self, file_path: Path) -> str:
        logger.debug("Uploading file", file_name=file_path.name)
        with open(file_path, "rb") as fh:
            body = await self._post(
                "files",
                f"Upload {file_path.name}",
                files={"file": (file_path.name, fh)},
                data={"purpose": "assistants"}
            )
        return self._require_id(body, f"Upload {file_path.name}")

    async def register_file(self, vector_store_id: str, file_id: str) -> None:
        await self._post(
            f"vector_stores/{vector_store_id}/files",
            "Register file in vector store",
            json={"file_id": file_id}
        )
        logger.info("File registered in vector store", vector_store_id=vector_store_id, file_id=file_id)

    async def upload_directory(self, vector_store_id: str, files_path: str | Path) -> List[str]:
        """Upload every regular file in ``files_path`` and register it.

        A file that fails to upload or register is logged and skipped.
        Returns the ids of the registered files.
        """
        directory = Path(files_path)
        if not directory.is_dir():
            raise ProvisioningError(f"Files directory not found: {directory}")

        registered = []
        for file_path in sorted(p for p in directory.iterdir() if p.is_file()):
            try:
                file_id = await self.upload_file(file_path)
                await self.register_file(vector_store_id, file_id)
            except (ProvisioningError, OSError) as e:
                logger.error("Skipping file", file_name=file_path.name, error=str(e))
                continue
            registered.append(file_id)

        logger.info("Reference files uploaded", registered=len(registered), directory=str(directory))
        return registered

    async def attach_vector_store(self, assistant_id: str, vector_store_id: str) -> None:
        await self._post(f"assistants/{assistant_id}", "Update assistant", json={
            "tool_resources": {
                "file_search": {"vector_store_ids": [vector_store_id]}
            }
        })
        logger.info("Assistant updated with vector store", assistant_id=assistant_id)

    @traced(operation_name="provision_assistant")
    @timed("provisioning_duration_ms")
    async def provision(self, profile: AssistantProfile) -> SessionIdentifiers:
        assistant_id = await self.create_assistant(profile)
        vector_store_id = await self.create_vector_store()
        await self.upload_directory(vector_store_id, profile.files_path)
        await self.attach_vector_store(assistant_id, vector_store_id)
        return SessionIdentifiers(assistant_id=assistant_id, vector_store_id=vector_store_id)

async def resolve_identifiers(
    provisioner: AssistantProvisioner,
    profile_loader,
    assistant_id: Optional[str] = None,
    vector_store_id: Optional[str] = None
) -> SessionIdentifiers:
    """Reuse configured identifiers or provision new resources."""
    if assistant_id and vector_store_id:
        logger.info("Using configured assistant", assistant_id=assistant_id, vector_store_id=vector_store_id)
        return SessionIdentifiers(assistant_id=assistant_id, vector_store_id=vector_store_id)

    return await provisioner.provision(profile_loader())
