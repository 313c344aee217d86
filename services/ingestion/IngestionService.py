"""Ingestion service.

Loads one datasource through its loader, splits the text into chunks with
deterministic ids and content hashes, and uploads them to the datastore
manager, which replaces every earlier vector of that datasource.
The pipeline is pure compute plus one remote write; it commits no
relational state.
"""

from shared.clients.ClientErrors import ConfigurationError
from shared.clients.datastore.DatastoreManagerInterface import DatastoreManagerInterface
from shared.clients.loader.LoaderManager import LoaderManager
from shared.helper.HelperConfig import HelperConfig
from shared.helper.text_splitter import content_hash, make_chunk_id, split_text
from shared.models.datastore import Datasource
from shared.models.document import Chunk, ChunkMetadata, Document


class IngestionService:
    """Orchestrates load → chunk → upload for single datasources."""

    def __init__(self, helper_config: HelperConfig, loader_manager: LoaderManager) -> None:
        self.logging = helper_config.get_logger()
        self._loader_manager = loader_manager
        self._chunk_size = int(helper_config.get_number_val("INGEST_CHUNK_SIZE", default=1000))
        self._chunk_overlap = int(helper_config.get_number_val("INGEST_CHUNK_OVERLAP", default=100))
        if self._chunk_size <= 0:
            raise ConfigurationError(f"INGEST_CHUNK_SIZE must be positive, got {self._chunk_size}.")
        if not 0 <= self._chunk_overlap < self._chunk_size:
            raise ConfigurationError(
                f"INGEST_CHUNK_OVERLAP must be between 0 and INGEST_CHUNK_SIZE - 1, got {self._chunk_overlap}."
            )

    ##########################################
    ############### CHUNKING #################
    ##########################################

    def build_chunks(self, document: Document) -> list[Chunk]:
        """Split a document into chunks carrying ids, hashes and offsets.

        Args:
            document (Document): The loader output.

        Returns:
            list[Chunk]: Ordered chunks; empty if the document has no text.
        """
        metadata = document.metadata
        datasource_hash = content_hash(document.text)
        chunks: list[Chunk] = []
        for chunk_offset, text in enumerate(split_text(document.text, self._chunk_size, self._chunk_overlap)):
            chunks.append(
                Chunk(
                    text=text,
                    metadata=ChunkMetadata(
                        chunk_id=make_chunk_id(metadata.datasource_id, chunk_offset),
                        datasource_id=metadata.datasource_id,
                        source=metadata.source,
                        tags=list(metadata.tags),
                        chunk_hash=content_hash(text),
                        datasource_hash=datasource_hash,
                        chunk_offset=chunk_offset,
                    ),
                )
            )
        return chunks

    async def _is_unchanged(self, chunks: list[Chunk], manager: DatastoreManagerInterface) -> bool:
        """True only if the stored hash matches and every chunk is present.

        A partially written upload already carries the new hash on its first
        batches, so the point count has to match as well.
        """
        datasource_id = chunks[0].metadata.datasource_id
        stored_hash = await manager.do_fetch_datasource_hash(datasource_id)
        if stored_hash != chunks[0].metadata.datasource_hash:
            return False
        stored_count = await manager.do_count(datasource_id)
        if stored_count != len(chunks):
            self.logging.warning(
                "Datasource '%s' has %d of %d chunks stored; uploading again.",
                datasource_id, stored_count, len(chunks),
            )
            return False
        return True

    ##########################################
    ############### CORE SYNC ################
    ##########################################

    async def do_ingest(
        self,
        datasource: Datasource,
        manager: DatastoreManagerInterface,
        skip_unchanged: bool = False,
    ) -> list[Chunk]:
        """Turn one datasource into persisted vectors.

        Args:
            datasource (Datasource): The datasource to ingest. Ownership has been checked by the caller.
            manager (DatastoreManagerInterface): Booted manager of the datasource's datastore.
            skip_unchanged (bool): Skip the upload if the stored datasource hash matches the loaded text
                and all of its chunks are stored.

        Returns:
            list[Chunk]: The uploaded chunks; empty if the document had no text or was unchanged.

        Raises:
            ValueError: If the datasource belongs to another datastore.            ClientError: If loading, embedding or the backend write fails.
        """
        if datasource.datastore_id != manager.datastore.id:
            raise ValueError(
                f"Datasource '{datasource.id}' belongs to datastore '{datasource.datastore_id}', "
                f"not '{manager.datastore.id}'."
            )
        self.logging.info("Ingesting datasource '%s' (%s) into datastore '%s'...", datasource.id, datasource.type.value, manager.datastore.id)

        loader = self._loader_manager.get_loader(datasource)
        document = await loader.load()
        chunks = self.build_chunks(document)

        if not chunks:
            self.logging.warning("Datasource '%s' produced no text; removing its stale vectors.", datasource.id)
            await manager.do_remove(datasource.id)
            return []

        if skip_unchanged and await self._is_unchanged(chunks, manager):
            self.logging.info("Datasource '%s' is unchanged. Skipping.", datasource.id)
            return []

        uploaded = await manager.do_upload(chunks)
        self.logging.info("Ingested datasource '%s': %d chunks uploaded.", datasource.id, len(uploaded))
        return uploaded

    ##########################################
    ############### REMOVAL ##################
    ##########################################

    async def do_remove_datasource(self, datasource: Datasource, manager: DatastoreManagerInterface) -> None:
        """Remove every vector of a datasource. Call before deleting the datasource record.

        Args:
            datasource (Datasource): The datasource being deleted.
            manager (DatastoreManagerInterface): Booted manager of the datasource's datastore.
        """
        await manager.do_remove(datasource.id)
        self.logging.info("Removed vectors of datasource '%s' from datastore '%s'.", datasource.id, manager.datastore.id)

    async def do_delete_datastore(self, manager: DatastoreManagerInterface) -> None:
        """Delete the backing collection of a datastore."""
        await manager.do_delete()
