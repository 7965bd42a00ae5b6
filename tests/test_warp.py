"""Tests for homography estimation and frame rendering."""

import numpy as np
import pytest

from homography_view.correspondence.model import CorrespondenceModel, Corner, Point2D, ViewConfig
from homography_view.warp.homography import (
    DegenerateCorrespondence,
    compute_transform,
    is_degenerate_quad,
    project_points,
)
from homography_view.warp.renderer import (
    MARKER_COLOR,
    WarpRenderer,
    draw_corner_markers,
    to_bgr_uint8,
)


def _random_image(width: int = 80, height: int = 60, seed: int = 7) -> np.ndarray:
    """Create a uint8 RGB image with no flat regions."""
    rng = np.random.RandomState(seed)
    return rng.randint(0, 256, (height, width, 3)).astype(np.uint8)


def _flat_image(width: int = 100, height: int = 80, value: float = 0.8) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.float32)


SOURCE = np.array([[0, 0], [100, 0], [100, 80], [0, 80]], dtype=np.float32)


class TestIsDegenerateQuad:

    def test_proper_quad(self) -> None:
        quad = np.array([[277, 89], [551, 217], [319, 399], [39, 270]], dtype=np.float32)
        assert not is_degenerate_quad(quad)

    def test_three_collinear(self) -> None:
        quad = np.array([[0, 0], [10, 0], [20, 0], [5, 5]], dtype=np.float32)
        assert is_degenerate_quad(quad)

    def test_two_coincident(self) -> None:
        quad = np.array([[0, 0], [0, 0], [20, 20], [0, 20]], dtype=np.float32)
        assert is_degenerate_quad(quad)

    def test_all_coincident(self) -> None:
        quad = np.full((4, 2), 42.0, dtype=np.float32)
        assert is_degenerate_quad(quad)


class TestComputeTransform:

    def test_identity_when_destination_equals_source(self) -> None:
        matrix = compute_transform(SOURCE, SOURCE)
        np.testing.assert_allclose(matrix, np.eye(3), atol=1e-6)

    def test_maps_source_corners_onto_destination(self) -> None:
        dst = np.array([[277, 89], [551, 217], [319, 399], [39, 270]], dtype=np.float32)
        matrix = compute_transform(SOURCE, dst)
        assert matrix.shape == (3, 3)
        assert matrix[2, 2] == pytest.approx(1.0)
        np.testing.assert_allclose(project_points(matrix, SOURCE), dst, atol=1e-3)

    def test_pure_translation(self) -> None:
        dst = SOURCE + np.array([30, -12], dtype=np.float32)
        matrix = compute_transform(SOURCE, dst)
        expected = np.array([[1, 0, 30], [0, 1, -12], [0, 0, 1]], dtype=np.float64)
        np.testing.assert_allclose(matrix, expected, atol=1e-6)

    def test_three_points_coincident_is_degenerate(self) -> None:
        dst = np.array([[50, 50], [50, 50], [50, 50], [0, 80]], dtype=np.float32)
        with pytest.raises(DegenerateCorrespondence):
            compute_transform(SOURCE, dst)

    def test_collinear_is_degenerate(self) -> None:
        dst = np.array([[0, 0], [50, 50], [100, 100], [0, 80]], dtype=np.float32)
        with pytest.raises(DegenerateCorrespondence):
            compute_transform(SOURCE, dst)

    def test_wrong_shape_rejected(self) -> None:
        with pytest.raises(ValueError):
            compute_transform(SOURCE[:3], SOURCE[:3])


class TestRenderer:

    def test_source_converted_to_bgr_once(self) -> None:
        image = _random_image()
        renderer = WarpRenderer(image, (80, 60))
        np.testing.assert_array_equal(renderer.source_bgr, image[:, :, ::-1])

    def test_float_image_roundtrips_to_uint8(self) -> None:
        image = _random_image()
        as_float = image.astype(np.float32) / 255.0
        np.testing.assert_array_equal(to_bgr_uint8(as_float), image[:, :, ::-1])

    def test_identity_render_reproduces_input(self) -> None:
        image = _random_image(80, 60)
        model = CorrespondenceModel((80, 60), [(1, 1), (70, 2), (75, 55), (3, 50)])
        model.reset_to_source()

        renderer = WarpRenderer(image, (80, 60))
        transform = renderer.compute_transform(model)
        np.testing.assert_allclose(transform, np.eye(3), atol=1e-6)

        frame = renderer.render(transform, model.destination_points, model.config)
        assert frame.shape == (60, 80, 3)
        assert frame.dtype == np.uint8
        np.testing.assert_array_equal(frame, renderer.source_bgr)

    def test_output_size_is_canvas_size(self) -> None:
        model = CorrespondenceModel((100, 80))
        renderer = WarpRenderer(_flat_image(), (640, 480))
        frame = renderer.refresh(model)
        assert frame.shape == (480, 640, 3)

    def test_outside_quad_is_background(self) -> None:
        model = CorrespondenceModel((100, 80))
        renderer = WarpRenderer(_flat_image(value=0.8), (640, 480))
        frame = renderer.refresh(model)
        # Top-left canvas corner lies outside the default quad
        np.testing.assert_array_equal(frame[0, 0], [0, 0, 0])
        # Centre of the quad is image content
        assert frame[250, 300].tolist() == [204, 204, 204]

    def test_markers_drawn_only_when_enabled(self) -> None:
        config = ViewConfig(show_corner_markers=False, drag_threshold_radius=10.0)
        model = CorrespondenceModel((100, 80), config=config)
        renderer = WarpRenderer(_flat_image(value=0.8), (640, 480))

        plain = renderer.refresh(model)
        for p in model.destination_points:
            assert plain[int(p.y), int(p.x) + 10].tolist() != list(MARKER_COLOR)

        model.toggle_markers()
        marked = renderer.refresh(model)
        for p in model.destination_points:
            assert marked[int(p.y), int(p.x) + 10].tolist() == list(MARKER_COLOR)

    def test_markers_drawn_over_image_content(self) -> None:
        config = ViewConfig(show_corner_markers=True, drag_threshold_radius=10.0)
        model = CorrespondenceModel((100, 80), [(0, 0), (100, 0), (100, 80), (0, 80)], config)
        renderer = WarpRenderer(_flat_image(value=1.0), (100, 80))
        frame = renderer.refresh(model)
        # (10, 0) is inside the warped image and on the top-left marker
        assert frame[10, 0].tolist() == list(MARKER_COLOR)

    def test_marker_radius_follows_threshold(self) -> None:
        frame = np.zeros((100, 100, 3), dtype=np.uint8)
        draw_corner_markers(frame, [Point2D(50, 50)], radius=20)
        assert frame[50, 70].tolist() == list(MARKER_COLOR)
        assert frame[50, 60].tolist() == [0, 0, 0]

    def test_far_off_canvas_marker_is_skipped(self) -> None:
        config = ViewConfig(show_corner_markers=True, drag_threshold_radius=10.0)
        model = CorrespondenceModel((100, 80), config=config)
        renderer = WarpRenderer(_flat_image(value=0.8), (640, 480))

        model.begin_drag(Point2D(551, 217))
        assert model.update_drag(Point2D(3e9, 217.0))
        frame = renderer.refresh(model)

        assert frame is not None
        # Remaining markers are still drawn
        p = model.destination_points[Corner.TOP_LEFT]
        assert frame[int(p.y), int(p.x) + 10].tolist() == list(MARKER_COLOR)

    def test_marker_partly_off_canvas_is_drawn(self) -> None:
        frame = np.zeros((100, 100, 3), dtype=np.uint8)
        draw_corner_markers(frame, [Point2D(105, 50), Point2D(-1e12, -1e12)], radius=10)
        assert frame[50, 95].tolist() == list(MARKER_COLOR)

    def test_present_frame_hands_buffer_to_surface(self) -> None:
        class Surface:
            def __init__(self):
                self.shown = []

            def show(self, frame):
                self.shown.append(frame)

        surface = Surface()
        renderer = WarpRenderer(_flat_image(), (640, 480), surface=surface)
        frame = renderer.refresh(CorrespondenceModel((100, 80)))
        renderer.present_frame(frame)
        assert len(surface.shown) == 1
        assert surface.shown[0] is frame


class TestDegeneracyHandling:
    """A degenerate drag position keeps the last valid frame."""

    def test_keeps_last_frame(self) -> None:
        model = CorrespondenceModel((100, 80))
        renderer = WarpRenderer(_flat_image(), (640, 480))

        good = renderer.refresh(model)
        assert good is not None
        good_copy = good.copy()

        for index in (Corner.TOP_LEFT, Corner.TOP_RIGHT, Corner.BOTTOM_RIGHT):
            model.set_destination(index, Point2D(200, 200))

        assert renderer.refresh(model) is None
        assert renderer.is_frozen
        assert renderer.last_frame is good
        np.testing.assert_array_equal(renderer.last_frame, good_copy)

    def test_recovers_when_points_move_back(self) -> None:
        model = CorrespondenceModel((100, 80))
        renderer = WarpRenderer(_flat_image(), (640, 480))
        renderer.refresh(model)

        model.set_destination(Corner.TOP_LEFT, Point2D(551, 217))
        assert renderer.refresh(model) is None

        model.set_destination(Corner.TOP_LEFT, Point2D(300, 100))
        frame = renderer.refresh(model)
        assert frame is not None
        assert not renderer.is_frozen
        assert renderer.last_frame is frame
        np.testing.assert_allclose(
            project_points(renderer.last_transform, model.as_arrays()[0])[0],
            [300, 100],
            atol=1e-3,
        )
