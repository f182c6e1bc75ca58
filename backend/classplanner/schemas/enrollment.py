from pydantic import BaseModel, Field


class EnrollmentCreate(BaseModel):
    student_id: str = Field(alias="studentId", min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)

    model_config = {"populate_by_name": True}


class EnrollmentOut(BaseModel):
    id: str
    student_id: str
    subject_id: str

    model_config = {"from_attributes": True}
