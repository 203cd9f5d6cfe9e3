"""Typed service-layer errors.

All of them subclass ``ValueError`` so callers that already treat
``ValueError`` as a client error keep working; routers map the specific
types onto 404/409.
"""


class ValidationError(ValueError):
    pass


class NotFoundError(ValueError):
    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        if entity_id is None:
            message = f"{entity} not found."
        else:
            message = f"{entity} with id {entity_id} not found."
        super().__init__(message)


class ConflictError(ValueError):
    def __init__(self, message: str, blocking_count: int = 0):
        self.blocking_count = blocking_count
        super().__init__(message)
