import cv2

from ..dm_types import MarkerObservation

# Selector values accepted on the command line, in OpenCV's own order.
DICTIONARY_NAMES = (
    "DICT_4X4_50",
    "DICT_4X4_100",
    "DICT_4X4_250",
    "DICT_4X4_1000",
    "DICT_5X5_50",
    "DICT_5X5_100",
    "DICT_5X5_250",
    "DICT_5X5_1000",
    "DICT_6X6_50",
    "DICT_6X6_100",
    "DICT_6X6_250",
    "DICT_6X6_1000",
    "DICT_7X7_50",
    "DICT_7X7_100",
    "DICT_7X7_250",
    "DICT_7X7_1000",
    "DICT_ARUCO_ORIGINAL",
)

DEFAULT_DICTIONARY = 8  # DICT_6X6_50


def dictionary_name(selector: int | str) -> str:
    """
    Resolve a selector (0-16, "6x6_50", "DICT_6X6_50", "aruco_original")
    to the OpenCV constant name.
    """
    if isinstance(selector, str):
        key = selector.strip()
        if key.isdigit():
            return dictionary_name(int(key))
        key = key.upper()
        if not key.startswith("DICT_"):
            key = "DICT_" + key
        if key not in DICTIONARY_NAMES:
            raise ValueError(f"unknown ArUco dictionary: {selector!r}")
        return key

    idx = int(selector)
    if not 0 <= idx < len(DICTIONARY_NAMES):
        raise ValueError(
            f"dictionary id must be 0-{len(DICTIONARY_NAMES) - 1}, got {selector}"
        )
    return DICTIONARY_NAMES[idx]


def get_dict(selector: int | str):
    """Works on OpenCV >= 4.7 (getPredefinedDictionary) and older (Dictionary_get)."""
    code = getattr(cv2.aruco, dictionary_name(selector))

    if hasattr(cv2.aruco, "getPredefinedDictionary"):
        return cv2.aruco.getPredefinedDictionary(code)
    return cv2.aruco.Dictionary_get(code)


def _make_params():
    """Create detector parameters across OpenCV versions."""
    if hasattr(cv2.aruco, "DetectorParameters_create"):
        return cv2.aruco.DetectorParameters_create()
    return cv2.aruco.DetectorParameters()


class ArucoDetect:
    """
    Strategy: detect ArUco markers in an image.
    Returns a list[MarkerObservation]; pose is estimated later by the
    Localize strategy.
    """
    def __init__(self, dictionary: int | str = DEFAULT_DICTIONARY):
        self.dictionary_name = dictionary_name(dictionary)
        self.dictionary = get_dict(dictionary)
        self.params = _make_params()
        self._detector = None
        # Prefer the newer ArucoDetector API if present
        if hasattr(cv2.aruco, "ArucoDetector"):
            self._detector = cv2.aruco.ArucoDetector(self.dictionary, self.params)

    def detect(self, image) -> list[MarkerObservation]:
        if self._detector is not None:
            corners, ids, _rej = self._detector.detectMarkers(image)
        else:
            corners, ids, _rej = cv2.aruco.detectMarkers(
                image, self.dictionary, parameters=self.params
            )

        observations: list[MarkerObservation] = []
        if ids is not None and len(ids) > 0:
            for i, mid in enumerate(ids.flatten()):
                observations.append(MarkerObservation(int(mid), corners[i]))
        return observations
