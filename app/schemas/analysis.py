from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.services.file_encoder import DATA_URI_PATTERN


class AnalyzeFileInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    file_data_uri: str = Field(
        pattern=DATA_URI_PATTERN,
        description=(
            "The file to analyze, as a data URI that must include a MIME type and use Base64 "
            "encoding. Expected format: 'data:<mimetype>;base64,<encoded_data>'."
        ),
    )


class AnalyzeFileOutput(BaseModel):
    analysis: str = Field(description="Insights into the file and its connection with the audience.")


class AnalysisRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Empty or null is allowed here so the handler can answer with its own "missing" message.
    file_data_uri: Optional[str] = Field(default=None, alias="fileDataUri")


class AnalysisResult(BaseModel):
    success: bool
    data: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _one_variant(self):
        if self.success:
            if not self.data or self.error is not None:
                raise ValueError("a successful result carries non-empty data and no error")
        elif self.error is None or self.data is not None:
            raise ValueError("a failed result carries an error and no data")
        return self

    @classmethod
    def ok(cls, data: str) -> "AnalysisResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "AnalysisResult":
        return cls(success=False, error=error)
