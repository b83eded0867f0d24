from fastapi.security import OAuth2PasswordBearer

# auto_error=False lets the identity dependency raise the domain AuthenticationError
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)
