import json
import logging
import os
from threading import RLock
from typing import List, Optional

logger = logging.getLogger(__name__)


class StoreReadError(Exception):
    """Raised when the materials file can't be used. `kind` is "missing" or "corrupt"."""

    def __init__(self, kind: str, path: str, reason: str = ""):
        self.kind = kind
        self.path = path
        message = f"{kind} materials file {path}"
        super().__init__(f"{message}: {reason}" if reason else message)


def _get_next_id(materials: List[dict]) -> int:
    if not materials:
        return 1
    return max(int(m.get("id") or 0) for m in materials) + 1


class MaterialStore:
    def __init__(self, path: str, pdf_dir: str):
        self.path = path
        self.pdf_dir = pdf_dir
        self._lock = RLock()

    # ----------------- Reading -----------------
    def load(self) -> List[dict]:
        """Read the whole materials list, raising StoreReadError if it can't be read."""
        if not os.path.exists(self.path):
            raise StoreReadError("missing", self.path)
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreReadError("corrupt", self.path, str(e))
        if not isinstance(data, list):
            raise StoreReadError("corrupt", self.path, "expected a JSON array")
        return data

    def list_materials(self) -> List[dict]:
        try:
            return self.load()
        except StoreReadError as e:
            if e.kind != "missing":
                logger.warning("Serving empty material list: %s", e)
            return []

    def get(self, material_id: int) -> Optional[dict]:
        for material in self.list_materials():
            if material.get("id") == material_id:
                return material
        return None

    # ----------------- Writing -----------------
    def _load_for_write(self) -> List[dict]:
        # A missing file is just an empty store; a corrupt one must not be overwritten
        try:
            return self.load()
        except StoreReadError as e:
            if e.kind == "missing":
                return []
            raise

    def save(self, materials: List[dict]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(materials, f, indent=2, ensure_ascii=False)

    def create(self, fields: dict) -> dict:
        with self._lock:
            materials = self._load_for_write()
            material = {
                "id": _get_next_id(materials),
                "title": fields.get("title"),
                "subtitle": fields.get("subtitle"),
                "pdfFile": fields.get("pdfFile") or None,
                "isAvailable": fields.get("isAvailable") or False,
                "availableDate": fields.get("availableDate") or None,
            }
            materials.append(material)
            self.save(materials)
            return material

    def update(self, material_id: int, changes: dict) -> Optional[dict]:
        with self._lock:
            materials = self._load_for_write()
            for index, material in enumerate(materials):
                if material.get("id") == material_id:
                    updated = {**material, **changes, "id": material["id"]}
                    materials[index] = updated
                    self.save(materials)
                    return updated
            return None

    def delete(self, material_id: int, also_delete_file: bool = False) -> Optional[dict]:
        with self._lock:
            materials = self._load_for_write()
            index = next((i for i, m in enumerate(materials) if m.get("id") == material_id), None)
            if index is None:
                return None

            material = materials.pop(index)
            if also_delete_file and material.get("pdfFile"):
                self._remove_pdf(material["pdfFile"])

            self.save(materials)
            return material

    def _remove_pdf(self, filename: str) -> None:
        pdf_path = os.path.join(self.pdf_dir, os.path.basename(filename))
        try:
            os.remove(pdf_path)
            logger.info("Deleted PDF %s", pdf_path)
        except FileNotFoundError:
            pass
