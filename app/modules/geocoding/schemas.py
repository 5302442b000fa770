from pydantic import BaseModel


class Place(BaseModel):
    display_name: str
    lat: float
    lon: float
