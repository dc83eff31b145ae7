from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

# Endpoint directory document published by the storage service.
class RegionEndpoints(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)
    public: dict[str, str] = Field(default_factory=dict, description="Internet-facing endpoints keyed by tag.")
    private: dict[str, str] = Field(default_factory=dict, description="Endpoints reachable from the provider's private network.")
    direct: dict[str, str] = Field(default_factory=dict, description="Direct-link endpoints.")

class ServiceEndpoints(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)
    cross_region: dict[str, RegionEndpoints] = Field(default_factory=dict, alias="cross-region", description="Geo-dispersed buckets.")
    regional: dict[str, RegionEndpoints] = Field(default_factory=dict, description="Buckets spread over the zones of one region.")
    single_site: dict[str, RegionEndpoints] = Field(default_factory=dict, alias="single-site", description="Buckets kept in one data center.")

class EndpointDirectory(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)
    service_endpoints: ServiceEndpoints = Field(..., alias="service-endpoints", description="Endpoints partitioned by locality class.")

    def locality(self, locality_class: str) -> dict[str, RegionEndpoints]:
        return {
            "cross-region": self.service_endpoints.cross_region,
            "regional": self.service_endpoints.regional,
            "single-site": self.service_endpoints.single_site,
        }[locality_class]
# END directory

class BucketDescriptor(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)
    name: str = Field(..., alias="Name", description="Bucket name.")
    location_constraint: Optional[str] = Field(None, alias="LocationConstraint", description="Region and storage class, e.g. 'us-south-standard'.")
    region: Optional[str] = Field(None, description="Explicit region, overrides the location constraint.")
    creation_date: Optional[datetime] = Field(None, alias="CreationDate")
