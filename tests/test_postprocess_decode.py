import unittest

import numpy as np

from yolo_detect.config import ModelProfile
from yolo_detect.errors import ShapeMismatchError
from yolo_detect.postprocess import DecoderConfig, DetectionDecoder
from yolo_detect.resize import LetterboxResize


def _raw(profile: ModelProfile) -> np.ndarray:
    return np.zeros((profile.output_rows, profile.num_candidates), dtype=np.float32)


def _put(raw: np.ndarray, anchor: int, box, scores) -> None:
    raw[0:4, anchor] = box
    raw[4:, anchor] = scores


class TestDetectionDecoder(unittest.TestCase):
    def test_single_candidate_coco_layout(self) -> None:
        profile = ModelProfile()
        raw = _raw(profile)
        scores = np.zeros(profile.num_classes, dtype=np.float32)
        scores[0] = 0.9
        _put(raw, 0, [320, 320, 100, 100], scores)

        dets = DetectionDecoder(profile).decode(raw.reshape(-1), 640, 640)
        self.assertEqual(len(dets), 1)
        det = dets[0]
        self.assertEqual(det.as_xyxy(), (270.0, 270.0, 370.0, 370.0))
        self.assertEqual(det.label, "person")
        self.assertEqual(det.class_id, 0)
        self.assertAlmostEqual(det.confidence, 0.9, places=6)

    def test_accepts_batched_output_shape(self) -> None:
        profile = ModelProfile(num_candidates=32, class_names=("a", "b", "c"))
        raw = _raw(profile)
        _put(raw, 5, [50, 60, 10, 20], [0.1, 0.8, 0.2])
        dets = DetectionDecoder(profile).decode(raw[None, ...], 640, 640)
        self.assertEqual(len(dets), 1)
        self.assertEqual(dets[0].label, "b")

    def test_all_below_threshold_returns_empty(self) -> None:
        profile = ModelProfile(num_candidates=32, class_names=("a", "b", "c"))
        raw = _raw(profile)
        raw[4:, :] = 0.3
        dets = DetectionDecoder(profile, DecoderConfig(confidence_threshold=0.5)).decode(raw, 640, 640)
        self.assertEqual(dets, [])

    def test_threshold_is_inclusive_and_configurable(self) -> None:
        profile = ModelProfile(num_candidates=8, class_names=("a", "b"))
        raw = _raw(profile)
        _put(raw, 0, [10, 10, 4, 4], [0.5, 0.0])
        _put(raw, 1, [20, 20, 4, 4], [0.0, 0.35])

        default = DetectionDecoder(profile).decode(raw, 640, 640)
        self.assertEqual([d.label for d in default], ["a"])

        lowered = DetectionDecoder(profile, DecoderConfig(confidence_threshold=0.3)).decode(raw, 640, 640)
        self.assertEqual([d.label for d in lowered], ["a", "b"])

    def test_never_emits_below_threshold(self) -> None:
        profile = ModelProfile(num_candidates=500, class_names=tuple(f"c{i}" for i in range(5)))
        rng = np.random.default_rng(7)
        raw = rng.uniform(0.0, 1.0, size=(profile.output_rows, profile.num_candidates)).astype(np.float32)
        raw[0:4, :] *= 640
        dets = DetectionDecoder(profile, DecoderConfig(confidence_threshold=0.8)).decode(raw, 640, 480)
        self.assertTrue(dets)
        for det in dets:
            self.assertGreaterEqual(det.confidence, 0.8)

    def test_ties_go_to_lowest_class_index(self) -> None:
        profile = ModelProfile(num_candidates=4, class_names=("a", "b", "c"))
        raw = _raw(profile)
        _put(raw, 0, [10, 10, 4, 4], [0.2, 0.7, 0.7])

        dets = DetectionDecoder(profile, DecoderConfig(confidence_threshold=0.0)).decode(raw, 640, 640)
        # Threshold 0 keeps the all-zero anchors too; they resolve to class 0.
        self.assertEqual(len(dets), 4)
        self.assertEqual(dets[0].label, "b")
        self.assertEqual([d.label for d in dets[1:]], ["a", "a", "a"])
        self.assertEqual([d.confidence for d in dets[1:]], [0.0, 0.0, 0.0])

    def test_output_keeps_candidate_order(self) -> None:
        profile = ModelProfile(num_candidates=6, class_names=("a",))
        raw = _raw(profile)
        _put(raw, 1, [10, 10, 4, 4], [0.6])
        _put(raw, 3, [30, 30, 4, 4], [0.9])
        _put(raw, 4, [40, 40, 4, 4], [0.7])
        dets = DetectionDecoder(profile).decode(raw, 640, 640)
        self.assertEqual([round(d.x1) for d in dets], [8, 28, 38])

    def test_rescales_x_and_y_independently(self) -> None:
        profile = ModelProfile(num_candidates=4, class_names=("a",))
        raw = _raw(profile)
        _put(raw, 0, [320, 320, 100, 100], [0.9])

        (det,) = DetectionDecoder(profile).decode(raw, 1280, 320)
        self.assertAlmostEqual(det.x1, 540.0)
        self.assertAlmostEqual(det.x2, 740.0)
        self.assertAlmostEqual(det.y1, 135.0)
        self.assertAlmostEqual(det.y2, 185.0)

    def test_identity_scale_matches_corner_conversion(self) -> None:
        profile = ModelProfile(num_candidates=64, class_names=("a",))
        rng = np.random.default_rng(3)
        raw = _raw(profile)
        raw[0:2, :] = rng.uniform(0, 640, size=(2, profile.num_candidates))
        raw[2:4, :] = rng.uniform(1, 200, size=(2, profile.num_candidates))
        raw[4, :] = 0.9

        dets = DetectionDecoder(profile).decode(raw, 640, 640)
        self.assertEqual(len(dets), profile.num_candidates)
        cx, cy, w, h = raw[0:4, :].astype(np.float64)
        expected = np.stack([cx - w / 2, cy - h / 2, cx + w / 2, cy + h / 2], axis=1)
        got = np.array([d.as_xyxy() for d in dets])
        self.assertTrue(np.allclose(got, expected))

    def test_zero_width_image_scales_to_zero(self) -> None:
        profile = ModelProfile(num_candidates=4, class_names=("a",))
        raw = _raw(profile)
        _put(raw, 0, [320, 320, 100, 100], [0.9])

        (det,) = DetectionDecoder(profile).decode(raw, 0, 640)
        self.assertEqual((det.x1, det.x2), (0.0, 0.0))
        self.assertEqual((det.y1, det.y2), (270.0, 370.0))

    def test_letterbox_transform(self) -> None:
        profile = ModelProfile(num_candidates=4, class_names=("a",))
        raw = _raw(profile)
        _put(raw, 0, [320, 320, 100, 100], [0.9])

        transform = LetterboxResize().transform_for((1280, 640), profile.input_size)
        (det,) = DetectionDecoder(profile).decode(raw, 1280, 640, transform)
        self.assertAlmostEqual(det.x1, 540.0)
        self.assertAlmostEqual(det.x2, 740.0)
        self.assertAlmostEqual(det.y1, 220.0)
        self.assertAlmostEqual(det.y2, 420.0)

    def test_degenerate_boxes_are_not_rejected(self) -> None:
        profile = ModelProfile(num_candidates=4, class_names=("a",))
        raw = _raw(profile)
        _put(raw, 0, [100, 100, 0, -10], [0.9])
        (det,) = DetectionDecoder(profile).decode(raw, 640, 640)
        self.assertEqual(det.x1, det.x2)
        self.assertGreater(det.y1, det.y2)

    def test_clip_boxes(self) -> None:
        profile = ModelProfile(num_candidates=4, class_names=("a",))
        raw = _raw(profile)
        _put(raw, 0, [10, 630, 100, 100], [0.9])

        (raw_det,) = DetectionDecoder(profile).decode(raw, 640, 640)
        self.assertLess(raw_det.x1, 0)

        (det,) = DetectionDecoder(profile, DecoderConfig(clip_boxes=True)).decode(raw, 640, 640)
        self.assertEqual(det.x1, 0.0)
        self.assertEqual(det.y2, 640.0)

    def test_shape_mismatch(self) -> None:
        profile = ModelProfile(num_candidates=8, class_names=("a", "b"))
        with self.assertRaises(ShapeMismatchError):
            DetectionDecoder(profile).decode(np.zeros(7 * 8, dtype=np.float32), 640, 640)
        with self.assertRaises(ShapeMismatchError):
            DetectionDecoder(ModelProfile()).decode(np.zeros((1, 85, 8400), dtype=np.float32), 640, 640)


if __name__ == "__main__":
    unittest.main()
