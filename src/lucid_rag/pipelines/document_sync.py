"""lucid_rag.pipelines.document_sync

Keeps a document's chunks in step with the document's lifecycle.

Document storage lives outside this package. Whatever service creates,
updates and deletes documents calls the hooks of :class:`DocumentIndexSync`
after each mutation. Indexing failures are logged and never raised, so a
document mutation never fails because chunk bookkeeping failed.

Notes
-----
An update deletes the old chunks and then indexes the new content with no
transaction spanning the two steps. If indexing fails (or the process dies)
in between, the document has no retrievable chunks until it is indexed again.
"""

import logging
from typing import Optional

from lucid_rag.pipelines.rag_pipeline import RAGPipeline

logger = logging.getLogger(__name__)


class DocumentIndexSync:
    """Document lifecycle hooks that maintain the chunk index.

    Parameters
    ----------
    pipeline : RAGPipeline
        Pipeline used to index and delete chunks.
    """

    def __init__(self, pipeline: RAGPipeline):
        self.pipeline = pipeline

    def on_document_created(self, document_id: str, content: str) -> None:
        """Index a newly created document."""
        if not content:
            return
        try:
            self.pipeline.index_document(document_id, content)
        except Exception:
            logger.warning("Failed to create chunks for document %s", document_id, exc_info=True)

    def on_document_updated(
            self,
            document_id: str,
            new_content: str,
            old_content: Optional[str] = None,
        ) -> None:
        """Replace a document's chunks after its content changed.

        Parameters
        ----------
        document_id : str
            Identifier of the updated document.
        new_content : str
            Content after the update.
        old_content : str or None, optional
            Content before the update. When given and equal to
            ``new_content``, the chunks are left untouched.

        Notes
        -----
        If the old chunks cannot be deleted, the new content is not indexed.
        """
        if old_content is not None and old_content == new_content:
            return

        try:
            self.pipeline.delete_document_chunks(document_id)
        except Exception:
            # Old chunks may still be stored; indexing now would mix both versions
            logger.warning(
                "Failed to delete old chunks for document %s; skipping reindex", document_id, exc_info=True
            )
            return

        if not new_content:
            return

        try:
            self.pipeline.index_document(document_id, new_content)
        except Exception:
            logger.warning("Failed to create new chunks for document %s", document_id, exc_info=True)

    def on_document_deleted(self, document_id: str) -> None:
        """Remove the chunks of a deleted document."""
        try:
            self.pipeline.delete_document_chunks(document_id)
        except Exception:
            logger.warning("Failed to delete chunks for document %s", document_id, exc_info=True)


__all__ = ["DocumentIndexSync"]
