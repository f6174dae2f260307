"""Edge, face and solid builders on a :class:`~geokern.native_brep.TopologyGraph`,
plus the edge length estimator.

Builders take world-space points, create the curve records through
:mod:`geokern.curve_builder` and add curves, vertices, edges and loops to
the graph.  Vertex handles can be passed in so that neighbouring edges share
their end vertices.

Copyright (c) 2025 geokern contributors
MIT License
"""

from math import pi, sqrt

from loguru import logger

from geokern import geom
from geokern.curve_builder import (line_from_begin_end, line3_from_begin_end, circle_from_center_radius,
                                   circle_from_center_begin, circle_from_three_points,
                                   ellipse_from_center_begin_end)
from geokern.curve_data import LineData, ArcData, NurbsData
from geokern.errors import DegenerateGeometryError, LoopClosureError
from geokern.surface_data import PlaneData
from geokern.tolerances import Tolerances


# -----------------------------------------------------------------------------
# Edges
# -----------------------------------------------------------------------------

def _vertex(graph, handle, p):
    return graph.add_vertex(p) if handle is None else handle


def build_line_edge(graph, b, e, v0=None, v1=None):
    """Line edge from *b* to *e*, parameter interval ``[0, |e - b|]``.

    A spatial line is built when either point leaves the ``z = 0`` plane.
    """
    b = geom.point(b)
    e = geom.point(e)
    if b[2] == 0.0 and e[2] == 0.0:
        data = line_from_begin_end(b, e)
    else:
        data = line3_from_begin_end(b, e)
    curve = graph.add_curve(data)
    return graph.add_edge(curve, 0.0, data.length, _vertex(graph, v0, b), _vertex(graph, v1, e))


def build_circle_edge(graph, center, radius, vertex=None):
    """Closed circle edge on ``[0, 2pi]``, its single vertex at ``u = 0``."""
    data = circle_from_center_radius(center, radius)
    curve = graph.add_curve(data)
    v = _vertex(graph, vertex, graph.curve_algorithm(curve).p(0.0))
    return graph.add_edge(curve, 0.0, geom.pi2, v, v)


def build_arc_edge(graph, center, b, e, v0=None, v1=None):
    """Counter-clockwise arc around *center* from *b* to the ray through *e*.

    The radius is ``|b - center|``.  When *e* lies on the ray through *b*
    the edge is the full circle.
    """
    data = circle_from_center_begin(center, b)
    curve = graph.add_curve(data)
    algo = graph.curve_algorithm(curve)
    c = geom.point(center)
    u1 = (geom.angle2(geom.sub(geom.point(e), c)) - geom.angle2(geom.sub(geom.point(b), c))) % geom.pi2
    if u1 < geom.epsilon or u1 > geom.pi2 - geom.epsilon:
        u1 = geom.pi2
    v0 = _vertex(graph, v0, algo.p(0.0))
    if u1 == geom.pi2:
        v1 = v0 if v1 is None else v1
    else:
        v1 = _vertex(graph, v1, algo.p(u1))
    return graph.add_edge(curve, 0.0, u1, v0, v1)


def build_arc_edge_from_three_points(graph, b, m, e, v0=None, v1=None):
    """Arc from *b* through *m* to *e*.

    The edge runs against the circle parameter (``u0 > u1``) when the three
    points turn clockwise.
    """
    data = circle_from_three_points(b, m, e)
    curve = graph.add_curve(data)
    algo = graph.curve_algorithm(curve)
    ub = algo.u(b)
    sm = (algo.u(m) - ub) % geom.pi2
    se = (algo.u(e) - ub) % geom.pi2
    if sm < se:
        u0, u1 = ub, ub + se
    else:
        u0, u1 = ub, ub - (geom.pi2 - se)
    return graph.add_edge(curve, u0, u1, _vertex(graph, v0, algo.p(u0)), _vertex(graph, v1, algo.p(u1)))


def build_ellipse_edge(graph, center, b, e, vertex=None):
    """Closed ellipse edge, major axis towards *b*, minor radius from *e*."""
    data = ellipse_from_center_begin_end(center, b, e)
    curve = graph.add_curve(data)
    v = _vertex(graph, vertex, graph.curve_algorithm(curve).p(0.0))
    return graph.add_edge(curve, 0.0, geom.pi2, v, v)


def build_curve_edge(graph, data, u0=None, u1=None, v0=None, v1=None):
    """Edge on any curve record; the interval defaults to the curve's domain."""
    curve = graph.add_curve(data)
    algo = graph.curve_algorithm(curve)
    if u0 is None or u1 is None:
        domain = algo.domain
        if domain is None:
            raise ValueError('{} curve is unbounded, pass u0 and u1'.format(data.kind))
        u0 = domain[0] if u0 is None else u0
        u1 = domain[1] if u1 is None else u1
    pb = algo.p(u0)
    pe = algo.p(u1)
    v0 = _vertex(graph, v0, pb)
    if v1 is None:
        v1 = v0 if geom.vclose(pb, pe) else graph.add_vertex(pe)
    return graph.add_edge(curve, u0, u1, v0, v1)


def edge_begin_point(graph, edge):
    e = graph.edge(edge)
    return graph.evaluate_edge(edge, e.u0)


def edge_end_point(graph, edge):
    e = graph.edge(edge)
    return graph.evaluate_edge(edge, e.u1)


def _edge_tangent(graph, edge, u):
    e = graph.edge(edge)
    t = graph.curve_algorithm(e.curve).tg(u)
    return t if e.forward else geom.scale3(t, -1.0)


def edge_begin_tangent(graph, edge):
    """Unit tangent at the edge begin, pointing along the edge sense."""
    return _edge_tangent(graph, edge, graph.edge(edge).u0)


def edge_end_tangent(graph, edge):
    return _edge_tangent(graph, edge, graph.edge(edge).u1)


# -----------------------------------------------------------------------------
# Length
# -----------------------------------------------------------------------------

def ellipse_perimeter(a, b):
    """Zhou Yucheng's approximation of the full ellipse perimeter."""
    lam = abs(a - b)/(a + b)
    h = lam*lam
    return pi*(a + b)*(1.0 + 3.0*h/(10.0 + sqrt(4.0 - 3.0*h))
                       + (4.0/pi - 14.0/11.0)*lam**(14.233 + 13.981*lam**6.42))


def _chord_length(algo, u0, u1, n):
    step = (u1 - u0)/n
    prev = algo.p(u0)
    total = 0.0
    for i in range(1, n + 1):
        cur = algo.p(u0 + step*i)
        total += geom.dist(prev, cur)
        prev = cur
    return total


def edge_length(graph, edge, tol=Tolerances.LENGTH, min_length=None):
    """Length of *edge*.

    Lines and circular arcs are exact, full ellipses use
    :func:`ellipse_perimeter` and NURBS edges the collaborator's arc length.
    Anything else is a polyline estimate that starts with eight chords and
    doubles them until the sum changes by less than *tol*.  With
    *min_length* the estimate returns as soon as the first sum exceeds it,
    which is enough to tell that an edge is not tiny.
    """
    e = graph.edge(edge)
    data = graph.curve(e.curve)
    algo = graph.curve_algorithm(e.curve)
    du = abs(e.u1 - e.u0)

    if isinstance(data, LineData):
        return du
    if isinstance(data, ArcData):
        if data.is_circle:
            return du*data.radius_x
        if abs(du - geom.pi2) < geom.epsilon:
            return ellipse_perimeter(data.radius_x, data.radius_y)
    if isinstance(data, NurbsData):
        return algo.length(e.u0, e.u1)

    n = Tolerances.LENGTH_INITIAL_SEGMENTS
    length = _chord_length(algo, e.u0, e.u1, n)
    if min_length is not None and length > min_length:
        return length
    for _ in range(Tolerances.LENGTH_MAX_REFINEMENTS):
        n *= 2
        refined = _chord_length(algo, e.u0, e.u1, n)
        if abs(refined - length) < tol:
            return refined
        length = refined
    logger.warning(f"edge {edge} length did not converge to {tol} after {n} segments")
    return length


# -----------------------------------------------------------------------------
# Loops and faces
# -----------------------------------------------------------------------------

def build_loop(graph, edges):
    """Loop through *edges* in order, orienting each one to follow the chain.

    Raises
    ------
    LoopClosureError
        If an edge shares no vertex with the end of its predecessor, or the
        chain does not return to its start.
    """
    edges = list(edges)
    if not edges:
        raise LoopClosureError('a loop needs at least one edge', {'index': None})
    first = graph.edge(edges[0])
    forward = True
    if len(edges) > 1:
        nxt = graph.edge(edges[1])
        if first.v1 not in (nxt.v0, nxt.v1) and first.v0 in (nxt.v0, nxt.v1):
            forward = False
    coedges = [graph.add_coedge(edges[0], forward)]
    end = first.v1 if forward else first.v0
    for i, h in enumerate(edges[1:], 1):
        e = graph.edge(h)
        if e.v0 == end:
            coedges.append(graph.add_coedge(h, True))
            end = e.v1
        elif e.v1 == end:
            coedges.append(graph.add_coedge(h, False))
            end = e.v0
        else:
            raise LoopClosureError('edge {} does not continue the loop'.format(i),
                                   {'index': i - 1, 'edge': h})
    return graph.add_loop(coedges)


def _plane(graph, surface):
    return graph.add_surface(PlaneData()) if surface is None else surface


def _polygon_loop(graph, points):
    pts = [geom.point(p) for p in points]
    if len(pts) > 1 and geom.vclose(pts[0], pts[-1]):
        pts = pts[:-1]
    if len(pts) < 3:
        raise DegenerateGeometryError('a polygon needs at least three distinct points',
                                      {'count': len(pts)})
    verts = [graph.add_vertex(p) for p in pts]
    n = len(pts)
    edges = [build_line_edge(graph, pts[i], pts[(i + 1) % n], verts[i], verts[(i + 1) % n])
             for i in range(n)]
    return build_loop(graph, edges)


def build_polygon_face(graph, points, holes=(), surface=None):
    """Planar face bounded by the polygon *points*, minus polygon *holes*."""
    outer = _polygon_loop(graph, points)
    inner = [_polygon_loop(graph, h) for h in holes]
    return graph.add_face(outer, inner, _plane(graph, surface))


def build_rectangle_face(graph, corner, width, height, surface=None):
    if width <= 0.0 or height <= 0.0:
        raise DegenerateGeometryError('rectangle sides must be positive',
                                      {'width': width, 'height': height})
    x, y = corner[0], corner[1]
    return build_polygon_face(graph, [(x, y), (x + width, y), (x + width, y + height), (x, y + height)],
                              surface=surface)


def build_circle_face(graph, center, radius, surface=None):
    outer = build_loop(graph, [build_circle_edge(graph, center, radius)])
    return graph.add_face(outer, (), _plane(graph, surface))


def build_ellipse_face(graph, center, b, e, surface=None):
    outer = build_loop(graph, [build_ellipse_edge(graph, center, b, e)])
    return graph.add_face(outer, (), _plane(graph, surface))


def build_face_from_edges(graph, edges, holes=(), surface=None):
    """Face from an outer chain of edge handles and hole chains."""
    outer = build_loop(graph, edges)
    inner = [build_loop(graph, h) for h in holes]
    return graph.add_face(outer, inner, _plane(graph, surface))


def build_shell(graph, faces):
    return graph.add_shell(faces)


def build_lump(graph, shells):
    return graph.add_lump(shells)


def build_body(graph, lumps):
    return graph.add_body(lumps)
