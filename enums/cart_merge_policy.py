from enum import Enum


class CartMergePolicy(str, Enum):
    """
    What happens to a guest cart when the visitor signs in.

    MERGE: guest lines are summed into the remote cart by product id,
           the merged cart is persisted and the guest snapshot is removed.
    DISCARD: the guest cart is dropped and the remote cart is shown as-is.
    """
    MERGE = "merge"
    DISCARD = "discard"
