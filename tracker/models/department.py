"""Department catalog: the closed set of workflow stages and their static attributes."""
from dataclasses import dataclass
from typing import Dict, List
import enum


class Department(str, enum.Enum):
    PMO = "PMO"
    DESIGN = "DESIGN"
    HTML = "HTML"
    PHP = "PHP"
    REACT = "REACT"
    WORDPRESS = "WORDPRESS"
    QA = "QA"
    DELIVERY = "DELIVERY"
    MANAGER = "MANAGER"


class DepartmentKind(str, enum.Enum):
    planning = "planning"
    design = "design"
    build = "build"
    qa = "qa"
    delivery = "delivery"
    management = "management"


@dataclass(frozen=True)
class DepartmentInfo:
    department: Department
    code: str           # one letter, unique across the catalog
    position: int       # default ordering
    kind: DepartmentKind

    @property
    def accepts_client_approval(self) -> bool:
        return self.kind in (DepartmentKind.planning, DepartmentKind.design)

    @property
    def accepts_qa_submission(self) -> bool:
        return self.kind == DepartmentKind.build


# PHP uses F and DELIVERY uses L so no two departments share a letter
DEPARTMENT_CATALOG: Dict[Department, DepartmentInfo] = {
    info.department: info
    for info in (
        DepartmentInfo(Department.PMO, "P", 1, DepartmentKind.planning),
        DepartmentInfo(Department.DESIGN, "D", 2, DepartmentKind.design),
        DepartmentInfo(Department.HTML, "H", 3, DepartmentKind.build),
        DepartmentInfo(Department.PHP, "F", 4, DepartmentKind.build),
        DepartmentInfo(Department.REACT, "R", 5, DepartmentKind.build),
        DepartmentInfo(Department.WORDPRESS, "W", 6, DepartmentKind.build),
        DepartmentInfo(Department.QA, "Q", 7, DepartmentKind.qa),
        DepartmentInfo(Department.DELIVERY, "L", 8, DepartmentKind.delivery),
        DepartmentInfo(Department.MANAGER, "M", 9, DepartmentKind.management),
    )
}


def department_info(department: Department) -> DepartmentInfo:
    return DEPARTMENT_CATALOG[Department(department)]


def ordered_departments() -> List[Department]:
    """All departments in their default catalog order."""
    return [
        info.department
        for info in sorted(DEPARTMENT_CATALOG.values(), key=lambda i: i.position)
    ]
