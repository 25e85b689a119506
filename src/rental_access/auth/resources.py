"""
rental_access.auth.resources

Protected resource types checked by the ownership gate.
"""

from __future__ import annotations

import enum


class ResourceType(enum.StrEnum):
    property = "property"
    application = "application"
    review = "review"
    inquiry = "inquiry"
    saved_search = "saved_search"
    favorite = "favorite"
    user = "user"

    # `property` is a member name here, so the builtin decorator is shadowed.
    @enum.property
    def label(self) -> str:
        # Used in "<Label> not found" responses.
        return self.value.replace("_", " ").capitalize()
