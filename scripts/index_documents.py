"""Text document indexing entrypoint.

This script reads plain-text files, chunks and embeds them, and writes the
chunks to the configured chunk store. Each file becomes one document whose id
is its path relative to the directory it was found in. Chunks already stored
under that id are replaced, so rerunning the script never duplicates them.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from lucid_rag.app.container import build_container
from lucid_rag.config import GlobalConfig
from lucid_rag.retrieval.chunk_store import InMemoryChunkStore


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Index text documents into the chunk store")

    parser.add_argument(
        "paths",
        nargs="+",
        type=str,
        help="Files or directories to index.",
    )

    parser.add_argument(
        "--config-file",
        "-c",
        required=True,
        type=str,
        help="Path to the YAML configuration file.",
    )

    parser.add_argument(
        "--pattern",
        "-g",
        required=False,
        type=str,
        default="*.txt",
        help="Glob used to find files inside directories (default: *.txt).",
    )

    parser.add_argument(
        "--embedding-workers",
        required=False,
        type=int,
        default=None,
        help="Override rag.embed_workers; values > 1 embed chunks concurrently.",
    )

    parser.add_argument(
        "--collection-name",
        required=False,
        type=str,
        default=None,
        help="Override chunk_store.collection_name from config (optional).",
    )

    return parser.parse_args()


def _iter_documents(paths: list[str], pattern: str):
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            for file in sorted(path.rglob(pattern)):
                if file.is_file():
                    yield file.relative_to(path).as_posix(), file
        elif path.is_file():
            yield path.name, path
        else:
            raise FileNotFoundError(f"No such file or directory: {path}")


def _override_section(cfg: GlobalConfig, section: str, key: str, value) -> None:
    current = cfg.raw.get(section)
    if current is None:
        current = {}
        cfg.raw[section] = current
    if not isinstance(current, dict):
        raise TypeError(f"'{section}' config must be a mapping to override {key}.")
    current[key] = value


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    cfg = GlobalConfig.load(args.config_file)
    if args.embedding_workers is not None:
        if args.embedding_workers < 1:
            raise ValueError("--embedding-workers must be >= 1 when provided.")
        _override_section(cfg, "rag", "embed_workers", int(args.embedding_workers))
    if args.collection_name:
        _override_section(cfg, "chunk_store", "collection_name", args.collection_name)

    container = build_container(cfg)
    pipeline = container.pipeline

    if not pipeline.can_index:
        raise RuntimeError("Embedder is not configured; set embedder.api_key to index documents.")
    if isinstance(container.chunk_store, InMemoryChunkStore):
        print("Warning: chunk_store is in-memory; indexed chunks are discarded when this script exits.")

    documents = list(_iter_documents(args.paths, args.pattern))
    print(f"Indexing {len(documents)} document(s) with {container.chunker!r}...")

    total = 0
    for document_id, file in documents:
        content = file.read_text(encoding="utf-8")
        stored = pipeline.reindex_document(document_id, content)
        total += stored
        print(f"  {document_id}: {stored} chunk(s)")

    print(f"Indexing complete! {total} chunk(s) stored; store now holds {container.chunk_store.count()}.")


if __name__ == "__main__":
    main()
