"""Aarogya Mitra healthcare records: past visits, their documents and vitals."""
