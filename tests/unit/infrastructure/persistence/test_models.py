"""
Tests pour les modeles SQLModel de persistance.

Verifie la serialisation JSON des identifiants externes et du detail complet.
"""

from sqlmodel import Session, SQLModel, create_engine

from src.infrastructure.persistence.models import ProviderMetadataModel


class TestProviderMetadataModel:
    """Tests pour ProviderMetadataModel."""

    def test_minimal_model(self):
        model = ProviderMetadataModel(
            media_type="movie",
            media_id="42",
            provider="tmdb",
            provider_media_id="603",
            title="The Matrix",
        )
        assert model.release_date is None
        assert model.external_ids == {}
        assert model.payload == {}
        assert model.fetched_at.tzinfo is not None

    def test_external_ids_roundtrip(self):
        """Le setter serialise, le getter deserialise."""
        model = ProviderMetadataModel(
            media_type="movie", media_id="42", provider="tmdb", provider_media_id="603", title="X"
        )

        model.external_ids = {"tmdb": "603", "imdb": "tt0133093"}

        assert model.external_ids_json == '{"tmdb": "603", "imdb": "tt0133093"}'
        assert model.external_ids == {"tmdb": "603", "imdb": "tt0133093"}

    def test_payload_serializes_non_json_values_as_strings(self):
        model = ProviderMetadataModel(
            media_type="tvshow", media_id="7", provider="tvdb", provider_media_id="81189", title="X"
        )

        model.payload = {"title": "Breaking Bad", "descriptors": ("violence",)}

        assert model.payload == {"title": "Breaking Bad", "descriptors": ["violence"]}

    def test_table_is_created(self):
        engine = create_engine("sqlite:///:memory:")
        SQLModel.metadata.create_all(engine)

        with Session(engine) as session:
            session.add(
                ProviderMetadataModel(
                    media_type="movie",
                    media_id="42",
                    provider="tmdb",
                    provider_media_id="603",
                    title="The Matrix",
                )
            )
            session.commit()

            stored = session.get(ProviderMetadataModel, ("movie", "42", "tmdb"))

            assert stored is not None
            assert stored.title == "The Matrix"
