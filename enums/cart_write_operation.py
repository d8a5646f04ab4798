from enum import Enum


class CartWriteOperation(str, Enum):
    """Writes the sync coordinator sends to a backing store."""
    # remote (user_carts table)
    UPSERT = "upsert"          # insert-or-update one line to its reduced quantity
    DELETE = "delete"          # delete one line by (user, product)
    CLEAR = "clear"            # delete all lines of the user
    REPLACE = "replace"        # delete all lines of the user, then insert the given ones
    # local (guest key-value snapshot)
    SNAPSHOT = "snapshot"      # serialize the whole cart
    DISCARD = "discard"        # drop the guest snapshot

    @property
    def is_local(self) -> bool:
        return self in (CartWriteOperation.SNAPSHOT, CartWriteOperation.DISCARD)

    @property
    def replaces_whole_cart(self) -> bool:
        return self in (
            CartWriteOperation.CLEAR,
            CartWriteOperation.REPLACE,
            CartWriteOperation.SNAPSHOT,
            CartWriteOperation.DISCARD,
        )
