"""
tokenbridge/client/base.py
Abstract base class for data service clients.
To add a new transport: subclass DataServiceClient and implement the five calls.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from tokenbridge.models.record import ListResponse

RecordId = Union[str, int]


class DataServiceClient(ABC):
    """
    List/get/create/update/delete against one app's datasets.
    Implementations raise UpstreamError on any remote failure.
    The caller never knows which credential mode is in use.
    """

    @abstractmethod
    def get_list(self, dataset_code: str, params: Optional[Dict[str, Any]] = None) -> ListResponse:
        ...

    @abstractmethod
    def get_one(self, dataset_code: str, record_id: RecordId) -> Dict[str, Any]:
        ...

    @abstractmethod
    def create(self, dataset_code: str, data: Dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def update(self, dataset_code: str, record_id: RecordId, data: Dict[str, Any]) -> Any:
        ...

    @abstractmethod
    def delete(self, dataset_code: str, record_id: RecordId) -> Any:
        ...

    def resolve_dataset(self, model: Union[str, int]) -> str:
        """Map a model alias or index to a dataset code. Override when a registry exists."""
        if isinstance(model, str) and model:
            return model
        raise KeyError(f"Cannot resolve model {model!r} without a model registry")

    def model(self, model: Union[str, int]) -> "DatasetModel":
        return DatasetModel(self, self.resolve_dataset(model))


class DatasetModel:
    """A client bound to one dataset code: client.model("Orders").get_list(...)."""

    def __init__(self, client: DataServiceClient, dataset_code: str):
        self.client       = client
        self.dataset_code = dataset_code

    def get_list(self, params: Optional[Dict[str, Any]] = None) -> ListResponse:
        return self.client.get_list(self.dataset_code, params)

    def get_one(self, record_id: RecordId) -> Dict[str, Any]:
        return self.client.get_one(self.dataset_code, record_id)

    def create(self, data: Dict[str, Any]) -> Any:
        return self.client.create(self.dataset_code, data)

    def update(self, record_id: RecordId, data: Dict[str, Any]) -> Any:
        return self.client.update(self.dataset_code, record_id, data)

    def delete(self, record_id: RecordId) -> Any:
        return self.client.delete(self.dataset_code, record_id)
