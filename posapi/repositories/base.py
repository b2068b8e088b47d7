from abc import ABC
from typing import TypeVar, Generic, Optional, List, Any, Dict, Type
from sqlalchemy.orm import Session
from pydantic import BaseModel

T = TypeVar("T")
SchemaType = TypeVar("SchemaType", bound=BaseModel)


class BaseRepository(Generic[T, SchemaType], ABC):
    """
    Base class for repositories.

    Public read methods return Pydantic schemas. Methods prefixed ``get_model``
    / ``add_`` hand back ORM instances for use inside an atomic unit, where the
    caller owns the transaction and nothing here commits.
    """

    def __init__(
        self, model_class: Type[T], schema_class: Type[SchemaType], db: Session
    ):
        self.model_class = model_class
        self.schema_class = schema_class
        self.db = db

    def _to_schema(self, model_instance: Any) -> Optional[SchemaType]:
        """SQLAlchemy model -> Pydantic schema"""
        if model_instance is None:
            return None
        return self.schema_class.model_validate(model_instance)

    def _to_schemas(self, model_instances: List[Any]) -> List[SchemaType]:
        return [self._to_schema(instance) for instance in model_instances]

    def get_model(self, id: Any) -> Optional[T]:
        """ORM instance by primary key (inside a unit of work)"""
        return self.db.get(self.model_class, id)

    def get_by_id(self, id: Any) -> Optional[SchemaType]:
        """Lookup by ID"""
        return self._to_schema(self.get_model(id))

    def get_by_field(self, field_name: str, value: Any) -> Optional[SchemaType]:
        """Lookup by an arbitrary column"""
        model_instance = (
            self.db.query(self.model_class)
            .filter(getattr(self.model_class, field_name) == value)
            .first()
        )
        return self._to_schema(model_instance)

    def exists(self, filters: Dict[str, Any]) -> bool:
        """Whether any row matches every column filter"""
        query = self.db.query(self.model_class.id)

        for key, value in filters.items():
            if hasattr(self.model_class, key):
                query = query.filter(getattr(self.model_class, key) == value)

        return query.first() is not None

    def add(self, **kwargs) -> T:
        """Stage a new row and flush it so generated keys are available"""
        instance = self.model_class(**kwargs)
        self.db.add(instance)
        self.db.flush()
        return instance

    def create(self, commit: bool = True, **kwargs) -> Optional[SchemaType]:
        """Insert a row and return it as a schema"""
        try:
            instance = self.add(**kwargs)
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._to_schema(instance)

    def update(
        self, instance_id: Any, commit: bool = True, **kwargs
    ) -> Optional[SchemaType]:
        """Update columns on a row; returns None when the row does not exist"""
        instance = self.get_model(instance_id)

        if not instance:
            return None

        for key, value in kwargs.items():
            if hasattr(instance, key):
                setattr(instance, key, value)

        try:
            self.db.flush()
            self.db.refresh(instance)
            if commit:
                self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self._to_schema(instance)

    def delete(self, instance_id: Any, commit: bool = True) -> bool:
        """Delete a row; False when it does not exist"""
        instance = self.get_model(instance_id)

        if not instance:
            return False

        try:
            self.db.delete(instance)
            self.db.flush()
            if commit:
                self.db.commit()
            return True
        except Exception:
            self.db.rollback()
            raise

    def count(self) -> int:
        return self.db.query(self.model_class).count()
