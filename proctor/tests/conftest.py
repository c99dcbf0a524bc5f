from typing import List, Tuple

import pytest

from proctor import geometry as g


def build_face(
    nose_x: float = 0.5,
    nose_y: float = 0.47,
    iris_dx: float = 0.0,
    iris_dy: float = 0.0,
    count: int = 478,
) -> List[Tuple[float, float, float]]:
    """Frontal face on a 478-point mesh: ears at 0.3/0.7, forehead 0.2, chin 0.8."""
    points = [(0.5, 0.5, 0.0)] * count
    if count < 478:
        return points

    def put(index: int, x: float, y: float) -> None:
        points[index] = (x, y, 0.0)

    put(g.LEFT_EAR, 0.3, 0.5)
    put(g.RIGHT_EAR, 0.7, 0.5)
    put(g.FOREHEAD, 0.5, 0.2)
    put(g.CHIN, 0.5, 0.8)
    put(g.NOSE_TIP, nose_x, nose_y)

    put(g.LEFT_EYE_OUTER, 0.40, 0.40)
    put(g.LEFT_EYE_INNER, 0.46, 0.40)
    put(g.RIGHT_EYE_INNER, 0.54, 0.40)
    put(g.RIGHT_EYE_OUTER, 0.60, 0.40)
    put(g.LEFT_IRIS, 0.43 + iris_dx, 0.40 + iris_dy)
    put(g.RIGHT_IRIS, 0.57 + iris_dx, 0.40 + iris_dy)
    return points


@pytest.fixture
def face():
    return build_face
