"""Static placement tables: semantic regions, grid descriptors and zones."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .. import stages
from ..model import Position, Size


@dataclass(frozen=True)
class GridDescriptor:
    base_x: float
    base_y: float
    columns: int
    row_spacing: float
    col_spacing: float

    def cell(self, index: int) -> Position:
        row, col = divmod(index, self.columns)
        return Position(self.base_x + col * self.col_spacing, self.base_y + row * self.row_spacing)


# Singleton node types and the coordinate reserved for each.
SEMANTIC_REGIONS: Dict[str, Position] = {
    # ideation & discovery
    "appName": Position(400.0, 50.0),
    "tagline": Position(420.0, 150.0),
    "coreProblem": Position(100.0, 200.0),
    "mission": Position(350.0, 300.0),
    "valueProp": Position(100.0, 500.0),
    "platform": Position(750.0, 50.0),
    "techStack": Position(1000.0, 50.0),
    "uiStyle": Position(1250.0, 50.0),
    # feature planning
    "featureDescription": Position(200.0, -700.0),
    "architectureBlueprint": Position(200.0, -450.0),
    # structure & flow
    "dataFlow": Position(-1700.0, 400.0),
    # interface & interaction
    "designSystem": Position(1800.0, 300.0),
    "branding": Position(2050.0, 300.0),
    "layoutStructure": Position(2300.0, 300.0),
    # architecture design
    "apiEndpoints": Position(-1000.0, -1400.0),
    # user auth flow
    "authMethods": Position(-300.0, 1300.0),
    "userRoles": Position(0.0, 1300.0),
    "securityFeatures": Position(300.0, 1300.0),
    # derived
    "projectSummary": Position(-300.0, 50.0),
}

GRID_DESCRIPTORS: Dict[str, GridDescriptor] = {
    "userPersona": GridDescriptor(700.0, 320.0, columns=5, row_spacing=200.0, col_spacing=190.0),
    "competitor": GridDescriptor(700.0, 760.0, columns=4, row_spacing=160.0, col_spacing=200.0),
    "feature": GridDescriptor(600.0, -700.0, columns=3, row_spacing=240.0, col_spacing=360.0),
    "screen": GridDescriptor(-1400.0, 400.0, columns=4, row_spacing=200.0, col_spacing=260.0),
    "userFlow": GridDescriptor(-1400.0, 1000.0, columns=3, row_spacing=200.0, col_spacing=320.0),
    "lofiLayout": GridDescriptor(1800.0, 520.0, columns=3, row_spacing=260.0, col_spacing=320.0),
    "databaseTable": GridDescriptor(-600.0, -1400.0, columns=4, row_spacing=220.0, col_spacing=260.0),
    "route": GridDescriptor(-600.0, -1000.0, columns=4, row_spacing=130.0, col_spacing=260.0),
}

# Fallback targets for types with neither a region nor a grid.
CATEGORY_ZONES: Dict[str, Position] = {
    "ux-flow": Position(400.0, 600.0),
    "system": Position(400.0, 800.0),
    "wireframe": Position(400.0, 1000.0),
}

STAGE_ZONES: Dict[str, Position] = {
    stages.IDEATION: Position(-800.0, -600.0),
    stages.FEATURES: Position(800.0, -600.0),
    stages.STRUCTURE: Position(-800.0, 600.0),
    stages.INTERFACE: Position(800.0, 600.0),
    stages.ARCHITECTURE: Position(0.0, -800.0),
    stages.AUTH: Position(0.0, 800.0),
    stages.UX_REVIEW: Position(-1200.0, 0.0),
    stages.AUTO_PROMPT: Position(1200.0, 0.0),
    stages.EXPORT: Position(0.0, 0.0),
}

DEFAULT_ZONE = Position(400.0, 400.0)

DEFAULT_NODE_SIZE = Size(180.0, 100.0)

NODE_SIZES: Dict[str, Size] = {
    "appName": Size(280.0, 80.0),
    "tagline": Size(240.0, 40.0),
    "coreProblem": Size(220.0, 160.0),
    "mission": Size(300.0, 140.0),
    "valueProp": Size(240.0, 180.0),
    "platform": Size(180.0, 80.0),
    "techStack": Size(180.0, 120.0),
    "uiStyle": Size(180.0, 120.0),
    "userPersona": Size(160.0, 140.0),
    "competitor": Size(140.0, 100.0),
    "feature": Size(300.0, 180.0),
    "featureDescription": Size(260.0, 140.0),
    "architectureBlueprint": Size(260.0, 160.0),
    "screen": Size(200.0, 140.0),
    "userFlow": Size(260.0, 140.0),
    "dataFlow": Size(240.0, 160.0),
    "designSystem": Size(200.0, 120.0),
    "branding": Size(200.0, 160.0),
    "layoutStructure": Size(220.0, 160.0),
    "lofiLayout": Size(260.0, 200.0),
    "databaseTable": Size(200.0, 160.0),
    "apiEndpoints": Size(280.0, 200.0),
    "route": Size(200.0, 80.0),
    "authMethods": Size(220.0, 140.0),
    "userRoles": Size(220.0, 140.0),
    "securityFeatures": Size(220.0, 140.0),
    "projectSummary": Size(260.0, 180.0),
}


def node_size_for(node_type: str) -> Size:
    return NODE_SIZES.get(node_type, DEFAULT_NODE_SIZE)


__all__ = [
    "CATEGORY_ZONES",
    "DEFAULT_NODE_SIZE",
    "DEFAULT_ZONE",
    "GRID_DESCRIPTORS",
    "GridDescriptor",
    "NODE_SIZES",
    "SEMANTIC_REGIONS",
    "STAGE_ZONES",
    "node_size_for",
]
