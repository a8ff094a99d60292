"""리소스 동기화 작업 서비스"""
