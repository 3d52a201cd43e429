"""
Data structures passed between the generation, storage, scan and mint steps.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class GenerationResult:
    """An AI-generated image held as a data URL, with its prompt."""

    image_url: str
    description: str
    prompt: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imageUrl": self.image_url,
            "description": self.description,
            "prompt": self.prompt,
        }


@dataclass(frozen=True)
class NFTAttribute:
    trait_type: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"trait_type": self.trait_type, "value": self.value}


@dataclass(frozen=True)
class NFTMetadataDocument:
    """ERC-721 style metadata document.

    Documents read back from storage may omit fields, so everything except
    the attribute list is optional here; builders always fill them in.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    attributes: List[NFTAttribute] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NFTMetadataDocument":
        attributes = []
        for item in data.get("attributes") or []:
            if isinstance(item, dict) and "trait_type" in item:
                attributes.append(NFTAttribute(trait_type=str(item["trait_type"]), value=item.get("value")))
        return cls(
            name=_optional_str(data.get("name")),
            description=_optional_str(data.get("description")),
            image=_optional_str(data.get("image")),
            attributes=attributes,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "attributes": [attribute.to_dict() for attribute in self.attributes],
        }


@dataclass(frozen=True)
class OwnedToken:
    """A token the scanned wallet owns, ready for display."""

    id: int
    name: str
    description: str
    image: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "description": self.description, "image": self.image}


@dataclass(frozen=True)
class PreparedMint:
    """Arguments for a `createNFT(tokenURI, isFree)` contract write."""

    token_uri: str
    is_free: bool


@dataclass(frozen=True)
class TransactionRecord:
    hash: str
    success: bool


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)
