"""Messages exchanged with the computation host."""

from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class UMAPConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    algorithm: Literal["umap"] = "umap"
    n_neighbors: int = Field(default=15, ge=1, alias="nNeighbors")
    min_dist: float = Field(default=0.1, gt=0, alias="minDist")
    n_epochs: int = Field(default=200, ge=1, alias="nEpochs")


class TSNEConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    algorithm: Literal["tsne"] = "tsne"
    perplexity: float = Field(default=30.0, gt=0)
    iterations: int = Field(default=500, ge=1)
    learning_rate: float = Field(default=100.0, gt=0, alias="learningRate")


ProjectorConfig = Union[UMAPConfig, TSNEConfig]


class ComputeRequest(BaseModel):
    request_id: int = Field(default=0, description="Assigned by the host on submit")
    vectors: list[list[float]] = Field(..., description="One feature vector per item")
    config: ProjectorConfig = Field(..., discriminator="algorithm")


class ProgressMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["progress"] = "progress"
    request_id: int = 0
    iteration: int
    total_iterations: int = Field(..., alias="totalIterations")


class LogMessage(BaseModel):
    type: Literal["log"] = "log"
    request_id: int = 0
    message: str


class DoneMessage(BaseModel):
    type: Literal["done"] = "done"
    request_id: int = 0
    embeddings: list[tuple[float, float]] = Field(default_factory=list)
    iterations: int = Field(default=0, description="Optimizer iterations actually run")


HostMessage = Union[ProgressMessage, LogMessage, DoneMessage]
