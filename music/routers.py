"""URL mappings for the music app, mounted under ``/api/music/``."""
from django.urls import path

from .views import auth, catalog, tracks, transactions, audio

urlpatterns = [
    # Auth
    path('auth/send-otp', auth.send_otp, name='music_send_otp'),
    path('auth/verify-otp', auth.verify_otp, name='music_verify_otp'),
    path('auth/signup', auth.signup, name='music_signup'),
    path('auth/login', auth.login, name='music_login'),
    path('auth/reset-pin', auth.reset_pin, name='music_reset_pin'),
    path('auth/me', auth.me, name='music_me'),
    # Ragas
    path('ragas', catalog.ragas, name='music_ragas'),
    path('ragas/batch-import', catalog.raga_batch_import, name='music_raga_batch_import'),
    path('ragas/<str:raga_id>', catalog.raga_detail, name='music_raga_detail'),
    # Artists
    path('artists', catalog.artists, name='music_artists'),
    path('artists/batch-import', catalog.artist_batch_import, name='music_artist_batch_import'),
    path('artists/<str:artist_id>', catalog.artist_detail, name='music_artist_detail'),
    # Tracks
    path('tracks/search', tracks.search, name='music_track_search'),
    path('tracks/youtube/search', tracks.youtube_search, name='music_youtube_search'),
    path('tracks/youtube/quota', tracks.youtube_quota, name='music_youtube_quota'),
    path('tracks/curated', tracks.curated, name='music_curated_tracks'),
    path('tracks/use-credit', tracks.use_credit, name='music_use_credit'),
    path('tracks/<str:track_id>/rate', tracks.rate, name='music_rate_track'),
    # Transactions
    path('transactions', transactions.create_transaction, name='music_transactions'),
    path('transactions/user/<str:phone>', transactions.user_transactions, name='music_user_transactions'),
    path('transactions/admin/all', transactions.all_transactions, name='music_all_transactions'),
    path('transactions/admin/summary', transactions.transaction_summary, name='music_transaction_summary'),
    path('transactions/admin/stats', transactions.transaction_stats, name='music_transaction_stats'),
    # Audio (GridFS) and events
    path('audio/upload', audio.upload_audio, name='music_audio_upload'),
    path('audio/stream/<str:file_id>', audio.stream_audio, name='music_audio_stream'),
    path('audio/info/<str:file_id>', audio.audio_info, name='music_audio_info'),
    path('audio/list', audio.list_audio, name='music_audio_list'),
    path('audio/<str:file_id>', audio.delete_audio, name='music_audio_delete'),
    path('events', audio.event_list, name='music_events'),
]
