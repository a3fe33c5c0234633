"""
Class catalogs mapping model class ids to names.

``COCO_CATALOG`` holds the 80 COCO classes in the order used by the standard
YOLOv8 exports, plus the coarse categories used when presenting the classes
to users.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

COCO_CLASSES: Tuple[str, ...] = (
    "person",
    "bicycle",
    "car",
    "motorcycle",
    "airplane",
    "bus",
    "train",
    "truck",
    "boat",
    "traffic light",
    "fire hydrant",
    "stop sign",
    "parking meter",
    "bench",
    "bird",
    "cat",
    "dog",
    "horse",
    "sheep",
    "cow",
    "elephant",
    "bear",
    "zebra",
    "giraffe",
    "backpack",
    "umbrella",
    "handbag",
    "tie",
    "suitcase",
    "frisbee",
    "skis",
    "snowboard",
    "sports ball",
    "kite",
    "baseball bat",
    "baseball glove",
    "skateboard",
    "surfboard",
    "tennis racket",
    "bottle",
    "wine glass",
    "cup",
    "fork",
    "knife",
    "spoon",
    "bowl",
    "banana",
    "apple",
    "sandwich",
    "orange",
    "broccoli",
    "carrot",
    "hot dog",
    "pizza",
    "donut",
    "cake",
    "chair",
    "couch",
    "potted plant",
    "bed",
    "dining table",
    "toilet",
    "tv",
    "laptop",
    "mouse",
    "remote",
    "keyboard",
    "cell phone",
    "microwave",
    "oven",
    "toaster",
    "sink",
    "refrigerator",
    "book",
    "clock",
    "vase",
    "scissors",
    "teddy bear",
    "hair drier",
    "toothbrush",
)

COCO_CATEGORIES: Dict[str, Tuple[str, ...]] = {
    "people": ("person",),
    "animals": ("bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra", "giraffe"),
    "vehicles": ("bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat"),
    "outdoor": ("traffic light", "fire hydrant", "stop sign", "parking meter", "bench"),
    "sports": (
        "frisbee",
        "skis",
        "snowboard",
        "sports ball",
        "kite",
        "baseball bat",
        "baseball glove",
        "skateboard",
        "surfboard",
        "tennis racket",
    ),
    "kitchen": ("bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl"),
    "food": ("banana", "apple", "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza", "donut", "cake"),
    "furniture": ("chair", "couch", "potted plant", "bed", "dining table", "toilet"),
    "electronics": ("tv", "laptop", "mouse", "remote", "keyboard", "cell phone"),
    "appliances": ("microwave", "oven", "toaster", "sink", "refrigerator"),
    "other": (
        "backpack",
        "umbrella",
        "handbag",
        "tie",
        "suitcase",
        "book",
        "clock",
        "vase",
        "scissors",
        "teddy bear",
        "hair drier",
        "toothbrush",
    ),
}


class ClassCatalog:
    """
    Read-only ordered list of class names, indexed by model class id.
    """

    def __init__(self, names: Sequence[str], categories: Optional[Mapping[str, Sequence[str]]] = None):
        if not names:
            raise ValueError("ClassCatalog requires at least one class name")
        self._names: Tuple[str, ...] = tuple(str(n) for n in names)
        self._ids: Dict[str, int] = {}
        for idx, name in enumerate(self._names):
            self._ids.setdefault(name.lower(), idx)
        self._categories: Dict[str, Tuple[str, ...]] = {
            k.lower(): tuple(v) for k, v in (categories or {}).items()
        }

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[str]:
        return iter(self._names)

    def __repr__(self) -> str:
        return f"ClassCatalog({len(self._names)} classes)"

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def name(self, class_id: int) -> str:
        if class_id < 0 or class_id >= len(self._names):
            raise IndexError(f"class_id {class_id} out of range (num classes={len(self._names)})")
        return self._names[class_id]

    def id_of(self, name: str) -> Optional[int]:
        return self._ids.get(name.strip().lower())

    def categories(self) -> List[str]:
        return list(self._categories)

    def names_in(self, category: str) -> Optional[Tuple[str, ...]]:
        return self._categories.get(category.strip().lower())

    def category_of(self, name: str) -> Optional[str]:
        wanted = name.strip().lower()
        for category, members in self._categories.items():
            if wanted in members:
                return category
        return None


COCO_CATALOG = ClassCatalog(COCO_CLASSES, COCO_CATEGORIES)
