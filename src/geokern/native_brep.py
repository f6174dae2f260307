"""Native BREP topology graph for geokern.

Topology hierarchy:
- Vertex: point in space
- Edge: parametric curve interval bounded by two vertices
- Coedge: oriented use of an edge inside a loop
- Loop: closed chain of coedges
- Face: surface bounded by an outer loop and zero or more hole loops
- Shell: connected set of faces
- Lump: shells of one connected solid
- Body: collection of lumps

Entities are immutable records referencing each other by integer handle
into a :class:`TopologyGraph`.  The graph is append-only: a handle stays
valid for the graph's lifetime, and a record never points at a handle
created after it, so the topology is acyclic by construction.  The one
mutable attribute is the placement transform of a face.

Edge sense follows the parameter interval: ``u0 < u1`` runs forward along
the curve, ``u0 > u1`` runs against it.  ``v0`` is always the vertex at
``u0`` and ``v1`` the vertex at ``u1``.

Copyright (c) 2025 geokern contributors
MIT License
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from loguru import logger

from geokern import geom
from geokern.curve_builder import curve_algorithm
from geokern.curve_data import CurveData
from geokern.errors import LoopClosureError
from geokern.surface_builder import surface_algorithm
from geokern.surface_data import SurfaceData
from geokern.xform import Transform

__all__ = ['Vertex', 'Edge', 'Coedge', 'Loop', 'Face', 'Shell', 'Lump', 'Body', 'TopologyGraph']


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class Vertex:
    point: Tuple[float, float, float]


@dataclass(frozen=True)
class Edge:
    curve: int
    u0: float
    u1: float
    v0: int
    v1: int

    @property
    def forward(self) -> bool:
        """True when the edge runs with the curve parameter."""
        return self.u1 >= self.u0


@dataclass(frozen=True)
class Coedge:
    """Use of ``edge`` in a loop, ``forward=False`` traverses it from ``v1`` to ``v0``."""

    edge: int
    forward: bool = True


@dataclass(frozen=True)
class Loop:
    coedges: Tuple[int, ...]


@dataclass
class Face:
    """Face record.  Everything but ``transform`` is fixed after creation."""

    outer: int
    holes: Tuple[int, ...] = ()
    surface: Optional[int] = None
    curves: Tuple[int, ...] = ()
    transform: Optional[Transform] = None

    def __setattr__(self, name, value):
        if name != 'transform' and name in self.__dict__:
            raise AttributeError('face attribute {!r} is read-only'.format(name))
        super().__setattr__(name, value)


@dataclass(frozen=True)
class Shell:
    faces: Tuple[int, ...]


@dataclass(frozen=True)
class Lump:
    shells: Tuple[int, ...]


@dataclass(frozen=True)
class Body:
    lumps: Tuple[int, ...]


# -----------------------------------------------------------------------------
# Graph
# -----------------------------------------------------------------------------

@dataclass
class TopologyGraph:
    """Arena of curves, surfaces and topology records addressed by handle."""

    curves: list = field(default_factory=list)
    surfaces: list = field(default_factory=list)
    vertices: list = field(default_factory=list)
    edges: list = field(default_factory=list)
    coedges: list = field(default_factory=list)
    loops: list = field(default_factory=list)
    faces: list = field(default_factory=list)
    shells: list = field(default_factory=list)
    lumps: list = field(default_factory=list)
    bodies: list = field(default_factory=list)

    def __post_init__(self):
        # edge -> ([forward coedges], [backward coedges])
        self._edge_coedges = []
        # vertex -> [incident edges]
        self._vertex_edges = []
        self._curve_algos = []
        self._surface_algos = []

    @staticmethod
    def _check(items, handle, what):
        if not isinstance(handle, int) or handle < 0 or handle >= len(items):
            raise ValueError('bad {} handle: {}'.format(what, handle))
        return items[handle]

    @staticmethod
    def _append(items, record):
        items.append(record)
        return len(items) - 1

    # geometry ----------------------------------------------------------------

    def add_curve(self, data: CurveData) -> int:
        if not isinstance(data, CurveData):
            raise ValueError('not a curve record: {}'.format(data))
        self._curve_algos.append(None)
        return self._append(self.curves, data)

    def add_surface(self, data: SurfaceData) -> int:
        if not isinstance(data, SurfaceData):
            raise ValueError('not a surface record: {}'.format(data))
        self._surface_algos.append(None)
        return self._append(self.surfaces, data)

    def curve(self, handle: int) -> CurveData:
        return self._check(self.curves, handle, 'curve')

    def surface(self, handle: int) -> SurfaceData:
        return self._check(self.surfaces, handle, 'surface')

    def curve_algorithm(self, handle: int):
        """Algorithm of curve *handle*, built on first use and cached."""
        data = self.curve(handle)
        if self._curve_algos[handle] is None:
            self._curve_algos[handle] = curve_algorithm(data)
        return self._curve_algos[handle]

    def surface_algorithm(self, handle: int):
        data = self.surface(handle)
        if self._surface_algos[handle] is None:
            self._surface_algos[handle] = surface_algorithm(data)
        return self._surface_algos[handle]

    # topology ----------------------------------------------------------------

    def add_vertex(self, point) -> int:
        p = geom.point(point)
        self._vertex_edges.append([])
        return self._append(self.vertices, Vertex((p[0], p[1], p[2])))

    def add_edge(self, curve: int, u0: float, u1: float, v0: int, v1: int) -> int:
        self.curve(curve)
        self.vertex(v0)
        self.vertex(v1)
        if u0 == u1:
            raise ValueError('edge parameter interval is empty: [{}, {}]'.format(u0, u1))
        handle = self._append(self.edges, Edge(curve, float(u0), float(u1), v0, v1))
        self._edge_coedges.append(([], []))
        self._vertex_edges[v0].append(handle)
        if v1 != v0:
            self._vertex_edges[v1].append(handle)
        return handle

    def add_coedge(self, edge: int, forward: bool = True) -> int:
        self.edge(edge)
        handle = self._append(self.coedges, Coedge(edge, bool(forward)))
        self._edge_coedges[edge][0 if forward else 1].append(handle)
        return handle

    def add_loop(self, coedges) -> int:
        """Add a loop after checking that each coedge ends where the next begins.

        Raises
        ------
        LoopClosureError
            With ``details['index']`` set to the coedge whose end does not
            meet the following coedge's begin.
        """
        coedges = tuple(coedges)
        if not coedges:
            raise LoopClosureError('a loop needs at least one coedge', {'index': None})
        for c in coedges:
            self.coedge(c)
        n = len(coedges)
        for i in range(n):
            end = self.coedge_end(coedges[i])
            begin = self.coedge_begin(coedges[(i + 1) % n])
            if end != begin:
                raise LoopClosureError('loop is open after coedge {}'.format(i),
                                       {'index': i, 'end': end, 'next_begin': begin})
        return self._append(self.loops, Loop(coedges))

    def add_face(self, outer: int, holes=(), surface: Optional[int] = None,
                 curves=None, transform: Optional[Transform] = None) -> int:
        """Add a face bounded by loop *outer* and hole loops *holes*.

        *curves* defaults to the curve handles of the face's edges.
        """
        holes = tuple(holes)
        for lp in (outer,) + holes:
            self.loop(lp)
        if surface is not None:
            self.surface(surface)
        handle = len(self.faces)
        face = Face(outer, holes, surface, (), transform)
        self.faces.append(face)
        if curves is None:
            curves = []
            for e in self.face_edges(handle):
                c = self.edges[e].curve
                if c not in curves:
                    curves.append(c)
        object.__setattr__(face, 'curves', tuple(curves))
        logger.debug(f"face {handle}: {len(holes)} holes, {len(face.curves)} curves")
        return handle

    def add_shell(self, faces) -> int:
        faces = tuple(faces)
        for f in faces:
            self.face(f)
        return self._append(self.shells, Shell(faces))

    def add_lump(self, shells) -> int:
        shells = tuple(shells)
        for s in shells:
            self.shell(s)
        return self._append(self.lumps, Lump(shells))

    def add_body(self, lumps) -> int:
        lumps = tuple(lumps)
        for lp in lumps:
            self.lump(lp)
        return self._append(self.bodies, Body(lumps))

    # getters -----------------------------------------------------------------

    def vertex(self, handle: int) -> Vertex:
        return self._check(self.vertices, handle, 'vertex')

    def edge(self, handle: int) -> Edge:
        return self._check(self.edges, handle, 'edge')

    def coedge(self, handle: int) -> Coedge:
        return self._check(self.coedges, handle, 'coedge')

    def loop(self, handle: int) -> Loop:
        return self._check(self.loops, handle, 'loop')

    def face(self, handle: int) -> Face:
        return self._check(self.faces, handle, 'face')

    def shell(self, handle: int) -> Shell:
        return self._check(self.shells, handle, 'shell')

    def lump(self, handle: int) -> Lump:
        return self._check(self.lumps, handle, 'lump')

    def body(self, handle: int) -> Body:
        return self._check(self.bodies, handle, 'body')

    # queries -----------------------------------------------------------------

    def coedge_begin(self, handle: int) -> int:
        """Vertex handle where coedge *handle* starts."""
        c = self.coedge(handle)
        e = self.edges[c.edge]
        return e.v0 if c.forward else e.v1

    def coedge_end(self, handle: int) -> int:
        c = self.coedge(handle)
        e = self.edges[c.edge]
        return e.v1 if c.forward else e.v0

    def edge_coedges(self, edge: int):
        """``(forward, backward)`` coedge handles that use *edge*."""
        self.edge(edge)
        fwd, bwd = self._edge_coedges[edge]
        return tuple(fwd), tuple(bwd)

    def vertex_edges(self, vertex: int):
        self.vertex(vertex)
        return tuple(self._vertex_edges[vertex])

    def loop_edges(self, loop: int):
        return tuple(self.coedges[c].edge for c in self.loop(loop).coedges)

    def face_edges(self, face: int):
        """Edges of the outer loop followed by the edges of each hole."""
        f = self.face(face)
        out = []
        for lp in (f.outer,) + f.holes:
            out.extend(self.loop_edges(lp))
        return tuple(out)

    def evaluate_edge(self, edge: int, u: float) -> list:
        """Point of *edge* at curve parameter *u*, in the curve's placement."""
        return self.curve_algorithm(self.edge(edge).curve).p(u)

    def move_face(self, face: int, transform: Optional[Transform]):
        """Place *face* by *transform*; ``None`` resets it to the identity."""
        self.face(face).transform = transform

    def face_point(self, face: int, point) -> list:
        """Map a point given in the face's frame into world coordinates."""
        t = self.face(face).transform
        if t is None:
            return geom.point(point)
        return t.to_world(point)
