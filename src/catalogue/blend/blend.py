"""Saved blend aggregate.

A saved blend is a shopper's named recipe: a base tea plus add-ins. Once the
recipe has been added to a cart it is linked to the materialized product.
A blend saved by a guest moves to the user's account on sign-in.
"""

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from catalogue.blend.composition import AddIn, decode_add_ins, encode_add_ins
from catalogue.domain import teashop
from identity.resolver import Identity, UserIdentity, owner_fields
from shared.model import aware, utcnow


@teashop.aggregate
class Blend:
    user_id = Identifier()
    session_id = String(max_length=36)
    name = String(max_length=255)
    base_tea_id = Identifier(required=True)
    add_ins = Text()  # JSON array of {"ingredientId", "quantity"}
    product_id = Identifier()
    created_at = DateTime(default=utcnow)
    updated_at = DateTime(default=utcnow)

    @invariant.post
    def must_belong_to_an_owner(self):
        if not self.user_id and not self.session_id:
            raise ValidationError({"owner": ["A blend belongs to a user or a guest session"]})

    @classmethod
    def create(cls, identity: Identity, base_tea_id, add_ins, name=None, product_id=None):
        now = utcnow()
        return cls(
            base_tea_id=base_tea_id,
            add_ins=encode_add_ins(add_ins),
            name=name or None,
            product_id=product_id,
            created_at=now,
            updated_at=now,
            **owner_fields(identity),
        )

    def composition(self) -> list[AddIn]:
        return decode_add_ins(self.add_ins)

    def belongs_to(self, identity: Identity) -> bool:
        if isinstance(identity, UserIdentity):
            return self.user_id == identity.user_id
        return self.user_id is None and self.session_id == identity.session_id

    def rename(self, name):
        self.name = name
        self.updated_at = utcnow()

    def claim_for(self, user_id):
        """Move a guest's blend to the user who just signed in."""
        self.user_id = user_id
        self.session_id = None
        self.updated_at = utcnow()

    def to_payload(self, product=None) -> dict:
        return {
            "id": self.id,
            "userId": self.user_id,
            "sessionId": self.session_id,
            "name": self.name,
            "baseTeaId": self.base_tea_id,
            "addIns": [add_in.to_payload() for add_in in self.composition()],
            "productId": self.product_id,
            "product": product.to_payload() if product is not None else None,
            "createdAt": aware(self.created_at).isoformat(),
            "updatedAt": aware(self.updated_at).isoformat(),
        }
