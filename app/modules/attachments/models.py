# Supabase Storage bucket: chat-attachments (private)
# Created by supabase-migration-v6-chat-attachments.sql

"""
Object layout:

chat-attachments/{uploader_user_id}/{conversation_id}/{epoch_ms}_{sanitized_name}

Storage policies:
- INSERT only when the first folder equals auth.uid()
- SELECT for any authenticated user (messages RLS gates which paths are known)
- DELETE only by the uploader

Message rows reference the returned path; downloads go through signed URLs
(default lifetime 1 hour).
"""
