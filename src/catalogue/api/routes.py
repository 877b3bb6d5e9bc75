"""FastAPI endpoints for saved blends."""

from fastapi import APIRouter, Depends

from catalogue.api.schemas import MigrateBlendsRequest, RenameBlendRequest, SaveBlendRequest
from catalogue.blend.composition import AddIn, encode_add_ins
from catalogue.blend.library import (
    DeleteBlend,
    MigrateGuestBlends,
    RenameBlend,
    SaveBlend,
    blend_payload,
    get_blend,
    list_blends,
)
from identity.dependencies import request_identity, required_user_id
from identity.resolver import Identity, normalize_session_id, owner_fields
from shared.domain import process

blend_router = APIRouter(prefix="/blends", tags=["blends"])


@blend_router.get("")
async def saved_blends(identity: Identity = Depends(request_identity)):
    return {"blends": [blend_payload(blend) for blend in list_blends(identity)]}


@blend_router.post("", status_code=201)
async def save_blend(body: SaveBlendRequest, identity: Identity = Depends(request_identity)):
    add_ins = [AddIn(ingredient_id=a.ingredient_id, quantity=a.quantity) for a in body.add_ins]
    command = SaveBlend(
        base_tea_id=body.base_tea_id,
        add_ins=encode_add_ins(add_ins),
        name=body.name,
        product_id=body.product_id,
        **owner_fields(identity),
    )
    return blend_payload(process(command, "save blend"))


@blend_router.post("/migrate")
async def migrate_blends(body: MigrateBlendsRequest, user_id: str = Depends(required_user_id)):
    command = MigrateGuestBlends(user_id=user_id, session_id=normalize_session_id(body.session_id))
    return {"migrated": process(command, "migrate blends")}


@blend_router.get("/{blend_id}")
async def show_blend(blend_id: str, identity: Identity = Depends(request_identity)):
    return blend_payload(get_blend(identity, blend_id))


@blend_router.patch("/{blend_id}")
async def rename_blend(blend_id: str, body: RenameBlendRequest, identity: Identity = Depends(request_identity)):
    command = RenameBlend(blend_id=blend_id, name=body.name, **owner_fields(identity))
    return blend_payload(process(command, "rename blend"))


@blend_router.delete("/{blend_id}")
async def delete_blend(blend_id: str, identity: Identity = Depends(request_identity)):
    process(DeleteBlend(blend_id=blend_id, **owner_fields(identity)), "delete blend")
    return {"success": True}
