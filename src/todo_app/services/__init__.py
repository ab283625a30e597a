"""Operations behind the HTTP routes; each takes the repository and, where relevant, the acting identity."""
