"""
Moment endpoints
- Creation
- Visibility-filtered reads
- Owner-or-admin updates and deletes
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from microblog.core.security import get_current_principal
from microblog.crud import moment as moment_crud
from microblog.db.database import get_db
from microblog.schemas.auth import Principal
from microblog.schemas.enums import Visibility
from microblog.schemas.moment import MomentCreate, MomentPermissions, MomentRead, MomentUpdate

router = APIRouter(prefix="/moments", tags=["Moments"])


@router.post("/", response_model=MomentRead, status_code=status.HTTP_201_CREATED)
async def create_moment(
    moment_in: MomentCreate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """Visibility defaults to PUBLIC when not given"""
    return await moment_crud.create_moment(db, principal, moment_in)


@router.get("/", response_model=List[MomentRead])
async def list_moments(
    author_id: Optional[int] = Query(None, description="Only moments by this author"),
    visibility: Optional[Visibility] = Query(None, description="Only moments with this visibility"),
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    """
    Moments the caller is allowed to see.
    Without author_id, moments from every author are considered.
    """
    return await moment_crud.list_visible_moments(db, principal, author_id=author_id, visibility=visibility)


@router.get("/{moment_id}", response_model=MomentRead)
async def read_moment(
    moment_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return await moment_crud.get_visible_moment(db, moment_id, principal)


@router.get("/{moment_id}/permissions", response_model=MomentPermissions)
async def read_moment_permissions(
    moment_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return MomentPermissions(
        moment_id=moment_id,
        can_view=await moment_crud.can_view_moment(db, moment_id, principal),
        can_mutate=await moment_crud.can_mutate_moment(db, moment_id, principal),
    )


@router.put("/{moment_id}", response_model=MomentRead)
async def update_moment(
    moment_id: str,
    moment_in: MomentUpdate,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    return await moment_crud.update_moment(db, moment_id, principal, moment_in)


@router.delete("/{moment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_moment(
    moment_id: str,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(get_current_principal)
):
    await moment_crud.remove_moment(db, moment_id, principal)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
