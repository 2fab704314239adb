"""Project category and department mapping repositories."""

from typing import Optional, List
from sqlalchemy.orm import Session

from tracker.repositories.base_repository import BaseRepository
from tracker.models.category import ProjectCategory, CategoryDepartmentMapping


class CategoryRepository(BaseRepository[ProjectCategory]):
    entity_name = "Category"

    def __init__(self, db: Session):
        super().__init__(ProjectCategory, db)

    def get_by_name(self, name: str) -> Optional[ProjectCategory]:
        return self.db.query(ProjectCategory).filter(ProjectCategory.name == name).first()


class CategoryMappingRepository(BaseRepository[CategoryDepartmentMapping]):
    entity_name = "Category mapping"

    def __init__(self, db: Session):
        super().__init__(CategoryDepartmentMapping, db)

    def list_for_category(self, category_id: int) -> List[CategoryDepartmentMapping]:
        return (
            self.db.query(CategoryDepartmentMapping)
            .filter(CategoryDepartmentMapping.category_id == category_id)
            .order_by(CategoryDepartmentMapping.sequence)
            .all()
        )

    def replace_for_category(
        self, category_id: int, rows: List[CategoryDepartmentMapping]
    ) -> List[CategoryDepartmentMapping]:
        """Delete the category's mappings and insert the given rows."""
        (
            self.db.query(CategoryDepartmentMapping)
            .filter(CategoryDepartmentMapping.category_id == category_id)
            .delete(synchronize_session=False)
        )
        # Deletes must reach the database before the unique constraints see the inserts
        self.db.flush()
        for row in rows:
            row.category_id = category_id
            self.db.add(row)
        self.db.flush()
        return self.list_for_category(category_id)
