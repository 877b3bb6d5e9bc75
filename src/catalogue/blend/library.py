"""Saved blend library, scoped to the caller's identity.

Mutations are commands handled by ``ManageBlendsHandler``; reads go straight
to the repository. A blend owned by someone else reads as missing.
"""

from collections.abc import Iterable

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from catalogue.blend.blend import Blend
from catalogue.blend.composition import AddIn, decode_add_ins
from catalogue.domain import logger, teashop
from catalogue.product.product import Product
from identity.resolver import Identity, UserIdentity, owner_of
from shared.errors import NotFoundError
from shared.model import aware


@teashop.command(part_of="Blend")
class SaveBlend:
    user_id = Identifier()
    session_id = String(max_length=36)
    base_tea_id = Identifier(required=True)
    add_ins = Text()  # JSON array of {"ingredientId", "quantity"}
    name = String(max_length=255)
    product_id = Identifier()


@teashop.command(part_of="Blend")
class RenameBlend:
    user_id = Identifier()
    session_id = String(max_length=36)
    blend_id = Identifier(required=True)
    name = String(required=True, max_length=255)


@teashop.command(part_of="Blend")
class DeleteBlend:
    user_id = Identifier()
    session_id = String(max_length=36)
    blend_id = Identifier(required=True)


@teashop.command(part_of="Blend")
class MigrateGuestBlends:
    user_id = Identifier(required=True)
    session_id = String(required=True, max_length=36)


@teashop.command_handler(part_of=Blend)
class ManageBlendsHandler:
    @handle(SaveBlend)
    def save(self, command):
        owner = owner_of(command.user_id, command.session_id)
        if command.product_id:
            _product(command.product_id)
        return save_blend(
            owner,
            command.base_tea_id,
            decode_add_ins(command.add_ins),
            name=command.name,
            product_id=command.product_id,
        )

    @handle(RenameBlend)
    def rename(self, command):
        blend = get_blend(owner_of(command.user_id, command.session_id), command.blend_id)
        blend.rename(command.name)
        current_domain.repository_for(Blend).add(blend)
        return blend

    @handle(DeleteBlend)
    def delete(self, command):
        owner = owner_of(command.user_id, command.session_id)
        blend = get_blend(owner, command.blend_id)
        current_domain.repository_for(Blend)._dao.delete(blend)
        logger.info("blend_deleted", blend_id=blend.id, owner=owner.key)

    @handle(MigrateGuestBlends)
    def migrate(self, command):
        """Move every blend saved under the session to the user. Returns the number moved."""
        repo = current_domain.repository_for(Blend)
        blends = repo._dao.query.filter(session_id=command.session_id).all().items
        for blend in blends:
            blend.claim_for(command.user_id)
            repo.add(blend)
        if blends:
            logger.info(
                "guest_blends_migrated",
                user_id=command.user_id,
                session_id=command.session_id,
                migrated=len(blends),
            )
        return len(blends)


def save_blend(
    identity: Identity,
    base_tea_id: str,
    add_ins: Iterable[AddIn],
    name: str | None = None,
    product_id: str | None = None,
) -> Blend:
    """Save a recipe in the current unit of work."""
    blend = Blend.create(identity, base_tea_id, add_ins, name=name, product_id=product_id)
    current_domain.repository_for(Blend).add(blend)
    logger.info("blend_saved", blend_id=blend.id, owner=identity.key, product_id=product_id)
    return blend


def _owned_by(identity: Identity) -> dict:
    if isinstance(identity, UserIdentity):
        return {"user_id": identity.user_id}
    return {"session_id": identity.session_id}


def list_blends(identity: Identity) -> list[Blend]:
    """Newest first."""
    blends = current_domain.repository_for(Blend)._dao.query.filter(**_owned_by(identity)).all().items
    blends = [b for b in blends if b.belongs_to(identity)]
    return sorted(blends, key=lambda b: (aware(b.created_at), b.id), reverse=True)


def get_blend(identity: Identity, blend_id: str) -> Blend:
    try:
        blend = current_domain.repository_for(Blend).get(blend_id)
    except ObjectNotFoundError:
        raise NotFoundError("Blend not found") from None
    if not blend.belongs_to(identity):
        raise NotFoundError("Blend not found")
    return blend


def find_blend_for_product(identity: Identity, product_id: str) -> Blend | None:
    """The owner's saved blend already linked to a materialized product, if any."""
    blends = current_domain.repository_for(Blend)._dao.query.filter(
        product_id=product_id, **_owned_by(identity)
    ).all().items
    return next((b for b in blends if b.belongs_to(identity)), None)


def blend_payload(blend: Blend) -> dict:
    product = None
    if blend.product_id:
        try:
            product = current_domain.repository_for(Product).get(blend.product_id)
        except ObjectNotFoundError:
            product = None
    return blend.to_payload(product)


def _product(product_id: str) -> Product:
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        raise NotFoundError(f"Product {product_id} not found") from None
