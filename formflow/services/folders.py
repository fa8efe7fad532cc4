from __future__ import annotations

import uuid
from typing import Any

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from formflow.models.common import utcnow
from formflow.models.folder import Folder
from formflow.models.form import Form
from formflow.services.ids import as_uuid_or_none

FOLDER_NOT_FOUND = "Pasta não encontrada"
ROOT_COUNT_KEY = "root"


def _to_iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_folder(folder: Folder) -> dict:
    return {
        "id": str(folder.id),
        "name": folder.name,
        "parent_id": str(folder.parent_id) if folder.parent_id else None,
        "order_index": int(folder.order_index or 0),
        "created_at": _to_iso(folder.created_at),
        "updated_at": _to_iso(folder.updated_at),
    }


def get_owned_folder_or_404(db: Session, folder_id: Any, user_id: uuid.UUID) -> Folder:
    folder_uuid = as_uuid_or_none(folder_id)
    folder = db.get(Folder, folder_uuid) if folder_uuid is not None else None
    if folder is None or folder.user_id != user_id:
        raise HTTPException(status_code=404, detail=FOLDER_NOT_FOUND)
    return folder


def list_folders(db: Session, user_id: uuid.UUID) -> list[Folder]:
    return (
        db.query(Folder)
        .filter(Folder.user_id == user_id)
        .order_by(Folder.order_index.asc(), Folder.created_at.asc())
        .all()
    )


def form_counts(db: Session, user_id: uuid.UUID, folders: list[Folder]) -> dict[str, int]:
    rows = (
        db.query(Form.folder_id, func.count(Form.id))
        .filter(Form.user_id == user_id)
        .group_by(Form.folder_id)
        .all()
    )
    by_folder = {folder_id: int(total or 0) for folder_id, total in rows}
    counts = {ROOT_COUNT_KEY: by_folder.get(None, 0)}
    for folder in folders:
        counts[str(folder.id)] = by_folder.get(folder.id, 0)
    return counts


def _clean_name_or_400(name: Any) -> str:
    value = str(name or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail="Nome da pasta é obrigatório")
    return value


def create_folder(db: Session, user_id: uuid.UUID, name: Any, parent_id: Any = None) -> Folder:
    parent = get_owned_folder_or_404(db, parent_id, user_id) if parent_id else None
    total = db.query(func.count(Folder.id)).filter(Folder.user_id == user_id).scalar() or 0
    folder = Folder(
        user_id=user_id,
        name=_clean_name_or_400(name),
        parent_id=parent.id if parent else None,
        order_index=int(total),
    )
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder


def rename_folder(db: Session, folder: Folder, name: Any) -> Folder:
    folder.name = _clean_name_or_400(name)
    folder.updated_at = utcnow()
    db.add(folder)
    db.commit()
    db.refresh(folder)
    return folder


def delete_folder(db: Session, folder: Folder) -> None:
    """Forms go back to the root; child folders are re-parented one level up."""
    db.query(Form).filter(Form.folder_id == folder.id).update({Form.folder_id: None}, synchronize_session=False)
    db.query(Folder).filter(Folder.parent_id == folder.id).update(
        {Folder.parent_id: folder.parent_id},
        synchronize_session=False,
    )
    db.delete(folder)
    db.commit()


def folder_path(db: Session, folder: Folder) -> list[dict]:
    path = [folder]
    seen = {folder.id}
    current = folder
    while current.parent_id is not None and current.parent_id not in seen:
        parent = db.get(Folder, current.parent_id)
        if parent is None or parent.user_id != folder.user_id:
            break
        path.append(parent)
        seen.add(parent.id)
        current = parent
    return [{"id": str(item.id), "name": item.name} for item in reversed(path)]
