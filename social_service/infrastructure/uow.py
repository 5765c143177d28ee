# social_service/infrastructure/uow.py

from typing import Any, Dict, Type

from sqlalchemy.ext.asyncio import AsyncSession


class UoWModel:
    def __init__(self, model: Any, uow: "UnitOfWork"):
        self.__dict__["_model"] = model
        self.__dict__["_uow"] = uow

    def __getattr__(self, key):
        return getattr(self._model, key)

    def __setattr__(self, key, value):
        setattr(self._model, key, value)
        # new models are inserted on commit, so they never need to be dirty
        if id(self._model) not in self._uow.new:
            self._uow.register_dirty(self._model)


class UnitOfWork:
    """Tracks new/dirty/deleted models and writes them through data mappers.

    When bound to a session, ``commit`` ends with a real transaction commit so
    callers can rely on the data being durable before they emit anything.
    """

    def __init__(self, session: AsyncSession | None = None) -> None:
        self.session = session
        self.dirty: Dict[int, Any] = {}
        self.new: Dict[int, Any] = {}
        self.deleted: Dict[int, Any] = {}
        self.mappers: Dict[Type, Any] = {}

    def register_dirty(self, model: Any) -> None:
        if isinstance(model, UoWModel):
            model = model._model
        model_id = id(model)
        if model_id not in self.new:
            self.dirty[model_id] = model

    def register_deleted(self, model: Any) -> None:
        if isinstance(model, UoWModel):
            model = model._model
        model_id = id(model)
        if model_id in self.new:
            self.new.pop(model_id)
            return
        self.dirty.pop(model_id, None)
        self.deleted[model_id] = model

    def register_new(self, model: Any) -> UoWModel:
        if isinstance(model, UoWModel):
            model = model._model
        self.new[id(model)] = model
        return UoWModel(model, self)

    def _mapper_for(self, model: Any):
        try:
            return self.mappers[type(model)]
        except KeyError:
            raise LookupError(
                f"No data mapper registered for {type(model).__name__}"
            ) from None

    async def commit(self) -> None:
        try:
            for model in self.new.values():
                await self._mapper_for(model).insert(model)
            for model in self.dirty.values():
                await self._mapper_for(model).update(model)
            for model in self.deleted.values():
                await self._mapper_for(model).delete(model)
            if self.session is not None:
                await self.session.commit()
        except Exception:
            await self.rollback()
            raise
        finally:
            self.new.clear()
            self.dirty.clear()
            self.deleted.clear()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
