class ListResponseMixin:
    """Wraps a service's ``list`` result in the paginated response envelope.

    ``list`` implementations take ``limit`` and ``offset`` as their last two
    positional arguments.
    """

    def list_response(self, db, *args, **kwargs):
        items = self.list(db, *args, **kwargs)
        limit = kwargs.get("limit", args[-2] if len(args) >= 2 else None)
        offset = kwargs.get("offset", args[-1] if args else None)
        return {"items": items, "count": len(items), "limit": limit, "offset": offset}
