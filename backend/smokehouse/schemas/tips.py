from pydantic import BaseModel, ConfigDict, Field


class HeatingTip(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    title: str
    # client-side icon key: flame, cooking-pot, zap, grid-3x3
    icon: str
    steps: list[str] = Field(min_length=1)


class HeatingGuide(BaseModel):
    tips: list[HeatingTip]
    chef_tip: str | None = None
