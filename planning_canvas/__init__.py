from .model import (
    Connection,
    ConnectIntent,
    CreateNodeIntent,
    DeleteNodeIntent,
    DisconnectIntent,
    Intent,
    MoveNodeIntent,
    Node,
    NodeMetadata,
    Position,
    ProcessorState,
    ReconcileResult,
    Size,
    UpdateNodeIntent,
)
from .payloads import PayloadError, parse_stage_payload, require_payload
from .fingerprint import fingerprint
from .config import (
    EngineConfig,
    LayoutConfig,
    PlacementConfig,
    SessionConfig,
    get_engine_config,
    load_engine_config,
    set_engine_config,
)
from .placement import arrange_nodes_in_group, place
from .orchestrator import prune, reconcile
from .layout import (
    LayoutBackend,
    LayoutBackendError,
    LayoutResult,
    NetworkxLayoutBackend,
    apply_force_directed_layout,
    apply_hierarchical_layout,
    apply_radial_layout,
    apply_stage_layout,
    layout,
)
from .session import CanvasSession

__all__ = [
    'CanvasSession',
    'Connection',
    'ConnectIntent',
    'CreateNodeIntent',
    'DeleteNodeIntent',
    'DisconnectIntent',
    'EngineConfig',
    'Intent',
    'LayoutBackend',
    'LayoutBackendError',
    'LayoutConfig',
    'LayoutResult',
    'MoveNodeIntent',
    'NetworkxLayoutBackend',
    'Node',
    'NodeMetadata',
    'PayloadError',
    'PlacementConfig',
    'Position',
    'ProcessorState',
    'ReconcileResult',
    'SessionConfig',
    'Size',
    'UpdateNodeIntent',
    'apply_force_directed_layout',
    'apply_hierarchical_layout',
    'apply_radial_layout',
    'apply_stage_layout',
    'arrange_nodes_in_group',
    'fingerprint',
    'get_engine_config',
    'layout',
    'load_engine_config',
    'parse_stage_payload',
    'place',
    'prune',
    'reconcile',
    'require_payload',
    'set_engine_config',
]
