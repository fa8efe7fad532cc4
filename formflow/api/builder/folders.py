from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from formflow.core.deps import get_current_user_id
from formflow.db.session import get_db
from formflow.schemas.builder import FolderCreate, FolderRename
from formflow.services.folders import (
    create_folder,
    delete_folder,
    folder_path,
    form_counts,
    get_owned_folder_or_404,
    list_folders,
    rename_folder,
    serialize_folder,
)

router = APIRouter()


@router.get("")
def list_owner_folders(db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    folders = list_folders(db, user_id)
    return {
        "rows": [serialize_folder(folder) for folder in folders],
        "form_counts": form_counts(db, user_id, folders),
    }


@router.post("", status_code=201)
def create_owner_folder(payload: FolderCreate, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    folder = create_folder(db, user_id, payload.name, payload.parent_id)
    return serialize_folder(folder)


@router.patch("/{folder_id}")
def rename_owner_folder(
    folder_id: str,
    payload: FolderRename,
    db: Session = Depends(get_db),
    user_id=Depends(get_current_user_id),
):
    folder = get_owned_folder_or_404(db, folder_id, user_id)
    return serialize_folder(rename_folder(db, folder, payload.name))


@router.delete("/{folder_id}")
def delete_owner_folder(folder_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    folder = get_owned_folder_or_404(db, folder_id, user_id)
    deleted_id = str(folder.id)
    delete_folder(db, folder)
    return {"status": "removido", "id": deleted_id}


@router.get("/{folder_id}/path")
def get_owner_folder_path(folder_id: str, db: Session = Depends(get_db), user_id=Depends(get_current_user_id)):
    folder = get_owned_folder_or_404(db, folder_id, user_id)
    return {"path": folder_path(db, folder)}
