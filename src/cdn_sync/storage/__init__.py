"""SQLite persistence shared by the queue, catalog, and process lock."""
