from pydantic import BaseModel, EmailStr, Field, field_validator

class LoginSchema(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=64)

class SignupSchema(LoginSchema):
    username: str = Field(min_length=3, max_length=50)
    full_name: str = Field(min_length=1, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password(cls, password: str):
        if len(password) < 6:
            raise ValueError("Password must be at least 6 characters")
        return password

    @field_validator("username", "full_name")
    @classmethod
    def strip_blank(cls, value: str):
        value = value.strip()
        if not value:
            raise ValueError("All fields are required")
        return value

class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    message: str = "login successful"
